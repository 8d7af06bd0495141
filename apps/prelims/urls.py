from django.urls import re_path
from rest_framework.routers import SimpleRouter

from .views import ExplainWrongAnswerView, GenerateQuestionsView, SessionViewSet


router = SimpleRouter()
router.register(r"prelims/sessions", SessionViewSet, basename="prelims-session")

urlpatterns = router.urls
urlpatterns += [
    re_path(r"^generate-questions/?$", GenerateQuestionsView.as_view(), name="generate-questions"),
    re_path(r"^explain-wrong-answer/?$", ExplainWrongAnswerView.as_view(), name="explain-wrong-answer"),
]
