# Generated manually to align with project requirements.
import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='MainsEvaluation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('question', models.TextField(default='Question will be extracted from uploaded files')),
                ('answer_text', models.TextField(blank=True, null=True)),
                ('answer_files', models.JSONField(default=list)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=16)),
                ('evaluation_result', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='mains_evaluations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'mains_evaluations',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['user', '-created_at'], name='mains_eval_user_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='MentorGuidance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action_item_index', models.PositiveIntegerField()),
                ('action_item_text', models.TextField()),
                ('mentor_response', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('evaluation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='mentor_guidance', to='mains.mainsevaluation')),
            ],
            options={
                'db_table': 'mains_mentor_guidance',
                'ordering': ['action_item_index'],
                'constraints': [models.UniqueConstraint(fields=('evaluation', 'action_item_index'), name='uniq_mentor_guidance_item')],
            },
        ),
    ]
