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
            name='PracticeSession',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('topic', models.CharField(max_length=200)),
                ('difficulty', models.CharField(choices=[('conceptual', 'Conceptual'), ('application', 'Application'), ('upsc_level', 'Upsc Level')], max_length=16)),
                ('questions', models.JSONField(default=list)),
                ('user_answers', models.JSONField(blank=True, null=True)),
                ('score', models.PositiveIntegerField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='prelims_sessions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'prelims_sessions',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['user', '-created_at'], name='prelims_sess_user_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='PersonalizedExplanation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('question_index', models.PositiveIntegerField()),
                ('explanation', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='explanations', to='prelims.practicesession')),
            ],
            options={
                'db_table': 'prelims_personalized_explanations',
                'ordering': ['question_index'],
                'constraints': [models.UniqueConstraint(fields=('session', 'question_index'), name='uniq_personalized_explanation')],
            },
        ),
    ]
