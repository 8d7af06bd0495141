from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.ratelimit import RateLimitMixin
from apps.common.validation import validate_payload
from apps.mains.serializers import EvaluationSummarySerializer
from apps.prelims.serializers import SessionSummarySerializer
from .audit import log_admin_action
from .models import Profile
from .permissions import IsPlatformAdmin
from .serializers import AdminUserSerializer, ProfileSerializer, ProfileUpdateSerializer


def _profiles_with_stats():
    return Profile.objects.annotate(
        mains_evaluations_count=Count("user__mains_evaluations", distinct=True),
        prelims_sessions_count=Count("user__prelims_sessions", distinct=True),
    ).order_by("-created_at")


class ProfileView(RateLimitMixin, APIView):
    def get(self, request):
        profile, _ = Profile.objects.get_or_create(user=request.user, defaults={"email": request.user.email or ""})
        return Response(ProfileSerializer(profile).data)

    def patch(self, request):
        data = validate_payload(ProfileUpdateSerializer, request.data)
        profile, _ = Profile.objects.get_or_create(user=request.user, defaults={"email": request.user.email or ""})
        for field, value in data.items():
            setattr(profile, field, value)
        profile.save()
        return Response(ProfileSerializer(profile).data)


class AdminUserListView(RateLimitMixin, APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request):
        log_admin_action(request, "ADMIN_VIEW_USERS", "profiles", details={"action": "Viewed all users list"})
        users = AdminUserSerializer(_profiles_with_stats(), many=True).data
        return Response({"users": users, "total_users": len(users)})


class AdminUserDetailView(RateLimitMixin, APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request, user_id: int):
        profile = get_object_or_404(_profiles_with_stats(), user_id=user_id)
        log_admin_action(request, "ADMIN_VIEW_USER", "profiles", resource_id=str(user_id))
        evaluations = profile.user.mains_evaluations.order_by("-created_at")
        sessions = profile.user.prelims_sessions.order_by("-created_at")
        return Response({
            "user": AdminUserSerializer(profile).data,
            "evaluations": EvaluationSummarySerializer(evaluations, many=True).data,
            "sessions": SessionSummarySerializer(sessions, many=True).data,
        })
