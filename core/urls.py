"""
URL configuration for the membership platform.
"""

from django.contrib import admin
from django.urls import include, path

from rest_framework_simplejwt.views import TokenRefreshView


urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),

    # API Authentication (JWT refresh; tokens are issued by /api/auth/login/)
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),

    # Apps
    path("api/auth/", include("accounts.api_urls")),
    path("api/admin/", include("administration.api_urls")),
    path("api/subscriptions/", include("subscriptions.api_urls")),
    path("api/content/", include("subscriptions.content_urls")),
]
