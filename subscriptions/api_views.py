"""
API views for subscriptions and content access.
"""

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from administration.models import Permission
from administration.permissions import HasAdminPermission
from audit.context import AuditContext
from . import entitlements, lifecycle
from .serializers import (
    AdminSubscriptionUpdateSerializer,
    ContentAccessGrantSerializer,
    GrantAccessSerializer,
    RevokeAccessSerializer,
    SubscriptionCreateSerializer,
    SubscriptionSerializer,
    plan_catalogue,
)


def _page_params(request) -> dict:
    return {
        "page": request.query_params.get("page", 1),
        "limit": request.query_params.get("limit", 20),
    }


class SubscriptionListCreateAPIView(APIView):
    """The caller's subscriptions, and purchase of a new one."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        subscriptions = lifecycle.subscriptions_for(request.user)
        return Response({
            "success": True,
            "data": {
                "subscriptions": SubscriptionSerializer(subscriptions, many=True).data,
                "plans": plan_catalogue(),
            },
        })

    def post(self, request):
        serializer = SubscriptionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subscription = lifecycle.create_subscription(
            request.user,
            serializer.validated_data["plan_id"],
            serializer.validated_data["payment_method_ref"],
            context=AuditContext.from_request(request),
        )
        return Response(
            {"success": True, "data": {"subscription": SubscriptionSerializer(subscription).data}},
            status=status.HTTP_201_CREATED,
        )


class SubscriptionCancelAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, subscription_id):
        subscription = lifecycle.cancel_subscription(
            request.user,
            subscription_id,
            context=AuditContext.from_request(request),
        )
        return Response({"success": True, "data": {"subscription": SubscriptionSerializer(subscription).data}})


class AdminSubscriptionListAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated, HasAdminPermission]
    required_permission = Permission.SUBSCRIPTION_MANAGEMENT

    def get(self, request):
        filters = {
            key: request.query_params[key]
            for key in ("status", "plan_id", "user_id")
            if request.query_params.get(key)
        }
        result = lifecycle.list_subscriptions(request.user, filters, **_page_params(request))
        return Response({
            "success": True,
            "data": {
                "subscriptions": SubscriptionSerializer(result["subscriptions"], many=True).data,
                "pagination": result["pagination"],
            },
        })


class AdminSubscriptionUpdateAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, subscription_id):
        serializer = AdminSubscriptionUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subscription = lifecycle.admin_update_subscription(
            request.user,
            subscription_id,
            context=AuditContext.from_request(request),
            **serializer.validated_data,
        )
        return Response({"success": True, "data": {"subscription": SubscriptionSerializer(subscription).data}})


class ContentAccessCheckAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, content_type, content_id):
        has_access = entitlements.check_access(request.user.pk, content_type, content_id)
        return Response({
            "success": True,
            "data": {
                "content_type": content_type,
                "content_id": content_id,
                "has_access": has_access,
            },
        })


class MyContentAccessAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        grants = entitlements.access_for(request.user, request.query_params.get("content_type"))
        return Response({
            "success": True,
            "data": {
                "has_active_subscription": request.user.has_active_subscription(),
                "grants": ContentAccessGrantSerializer(grants, many=True).data,
            },
        })


class AdminGrantAccessAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = GrantAccessSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grant = entitlements.grant_access(
            request.user,
            context=AuditContext.from_request(request),
            **serializer.validated_data,
        )
        return Response({"success": True, "data": {"grant": ContentAccessGrantSerializer(grant).data}})


class AdminRevokeAccessAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = RevokeAccessSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grant = entitlements.revoke_access(
            request.user,
            context=AuditContext.from_request(request),
            **serializer.validated_data,
        )
        return Response({"success": True, "data": {"grant": ContentAccessGrantSerializer(grant).data}})


class AdminContentAccessListAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated, HasAdminPermission]
    required_permission = Permission.CONTENT_MANAGEMENT

    def get(self, request):
        filters = {
            key: request.query_params[key]
            for key in ("user_id", "content_type", "content_id")
            if request.query_params.get(key)
        }
        result = entitlements.list_grants(request.user, filters, **_page_params(request))
        return Response({
            "success": True,
            "data": {
                "grants": ContentAccessGrantSerializer(result["grants"], many=True).data,
                "pagination": result["pagination"],
            },
        })
