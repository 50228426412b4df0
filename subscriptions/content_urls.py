"""
API URL routes for content access.
"""

from django.urls import path

from . import api_views

app_name = "content_api"

urlpatterns = [
    path(
        "access/<str:content_type>/<str:content_id>/",
        api_views.ContentAccessCheckAPIView.as_view(),
        name="check_access",
    ),
    path("my-access/", api_views.MyContentAccessAPIView.as_view(), name="my_access"),
    path("admin/", api_views.AdminContentAccessListAPIView.as_view(), name="admin_list"),
    path("admin/grant/", api_views.AdminGrantAccessAPIView.as_view(), name="admin_grant"),
    path("admin/revoke/", api_views.AdminRevokeAccessAPIView.as_view(), name="admin_revoke"),
]
