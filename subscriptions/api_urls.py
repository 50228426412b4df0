"""
API URL routes for subscriptions.
"""

from django.urls import path

from . import api_views

app_name = "subscriptions_api"

urlpatterns = [
    path("", api_views.SubscriptionListCreateAPIView.as_view(), name="subscriptions"),
    path("<int:subscription_id>/cancel/", api_views.SubscriptionCancelAPIView.as_view(), name="cancel"),
    path("admin/", api_views.AdminSubscriptionListAPIView.as_view(), name="admin_list"),
    path("admin/<int:subscription_id>/", api_views.AdminSubscriptionUpdateAPIView.as_view(), name="admin_update"),
]
