from django.urls import re_path

from .views import AdminUserDetailView, AdminUserListView, ProfileView


urlpatterns = [
    re_path(r"^profile/?$", ProfileView.as_view(), name="profile"),
    re_path(r"^admin/users/?$", AdminUserListView.as_view(), name="admin-users"),
    re_path(r"^admin/users/(?P<user_id>\d+)/?$", AdminUserDetailView.as_view(), name="admin-user-detail"),
]
