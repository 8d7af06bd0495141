from django.urls import re_path
from rest_framework.routers import SimpleRouter

from .views import EvaluateAnswerView, EvaluationViewSet, MentorGuidanceView, UploadView


router = SimpleRouter()
router.register(r"mains/evaluations", EvaluationViewSet, basename="mains-evaluation")

urlpatterns = router.urls
urlpatterns += [
    re_path(r"^evaluate-answer/?$", EvaluateAnswerView.as_view(), name="evaluate-answer"),
    re_path(r"^mentor-guidance/?$", MentorGuidanceView.as_view(), name="mentor-guidance"),
    re_path(r"^upload/?$", UploadView.as_view(), name="upload"),
]
