"""
API URL routes for the administration app.
"""

from django.urls import path

from . import analytics, api_views

app_name = "admin_api"

urlpatterns = [
    path("registrations/", api_views.RegistrationListAPIView.as_view(), name="registrations"),
    path(
        "registrations/bulk-approve/",
        api_views.BulkApproveAPIView.as_view(),
        name="registrations_bulk_approve",
    ),
    path(
        "registrations/<int:user_id>/approve/",
        api_views.RegistrationDecisionAPIView.as_view(approve=True),
        name="registration_approve",
    ),
    path(
        "registrations/<int:user_id>/reject/",
        api_views.RegistrationDecisionAPIView.as_view(approve=False),
        name="registration_reject",
    ),
    path("grants/", api_views.AdminGrantListCreateAPIView.as_view(), name="grants"),
    path("grants/<int:grant_id>/", api_views.AdminGrantDetailAPIView.as_view(), name="grant_detail"),
    path("audit-logs/", api_views.AuditLogListAPIView.as_view(), name="audit_logs"),
    path("users/", api_views.UserListAPIView.as_view(), name="users"),
    path("users/<int:user_id>/", api_views.UserDetailAPIView.as_view(), name="user_detail"),
    path("stats/dashboard/", api_views.StatsAPIView.as_view(report=analytics.dashboard_stats), name="stats_dashboard"),
    path(
        "stats/subscriptions/",
        api_views.StatsAPIView.as_view(report=analytics.subscription_stats),
        name="stats_subscriptions",
    ),
    path("stats/content/", api_views.StatsAPIView.as_view(report=analytics.content_stats), name="stats_content"),
    path("stats/users/", api_views.StatsAPIView.as_view(report=analytics.user_overview), name="stats_users"),
]
