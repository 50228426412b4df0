"""
Admin API: registration review, admin grants, the account directory,
analytics and the audit trail.

Permission checks live in the service functions, which also audit denied
attempts; read-only listings are additionally gated by ``HasAdminPermission``.
"""

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts import registration
from accounts.models import RegistrationStatus
from accounts.serializers import AdminUserSerializer, BulkApproveSerializer, RegistrationDecisionSerializer
from audit.context import AuditContext
from audit.queries import query_audit_logs
from subscriptions.serializers import ContentAccessGrantSerializer, SubscriptionSerializer
from . import users
from . import permissions as admin_permissions
from .models import Permission
from .serializers import (
    AdminGrantCreateSerializer,
    AdminGrantSerializer,
    AdminGrantUpdateSerializer,
    AuditLogQuerySerializer,
    AuditLogSerializer,
    UserListQuerySerializer,
)


def _page_params(request) -> dict:
    return {
        "page": request.query_params.get("page", 1),
        "limit": request.query_params.get("limit", 20),
    }


class RegistrationListAPIView(APIView):
    """Accounts awaiting review (``?status=`` any registration status or ``all``)."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        result = registration.pending_registrations(
            request.user,
            status=request.query_params.get("status", RegistrationStatus.PAYMENT_SUBMITTED),
            **_page_params(request),
        )
        return Response({
            "success": True,
            "data": {
                "users": AdminUserSerializer(result["users"], many=True).data,
                "pagination": result["pagination"],
            },
        })


class RegistrationDecisionAPIView(APIView):
    """Approve or reject one registration."""

    permission_classes = [permissions.IsAuthenticated]
    approve = True

    def post(self, request, user_id):
        serializer = RegistrationDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        decide = registration.approve_registration if self.approve else registration.reject_registration
        user = decide(
            request.user,
            user_id,
            admin_notes=serializer.validated_data["admin_notes"],
            context=AuditContext.from_request(request),
        )
        return Response({"success": True, "data": {"user": AdminUserSerializer(user).data}})


class BulkApproveAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = BulkApproveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if serializer.validated_data["scope"] == BulkApproveSerializer.SCOPE_ALL:
            approve = registration.approve_all_unapproved
        else:
            approve = registration.approve_submitted_with_active_subscription
        count = approve(request.user, context=AuditContext.from_request(request))
        return Response({"success": True, "data": {"approved_count": count}})


class AdminGrantListCreateAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        result = admin_permissions.list_admin_grants(request.user, **_page_params(request))
        return Response({
            "success": True,
            "data": {
                "admins": AdminGrantSerializer(result["admins"], many=True).data,
                "pagination": result["pagination"],
            },
        })

    def post(self, request):
        serializer = AdminGrantCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grant = admin_permissions.create_admin_grant(
            request.user,
            serializer.validated_data["user_id"],
            role=serializer.validated_data["role"],
            permissions=serializer.validated_data.get("permissions"),
            context=AuditContext.from_request(request),
        )
        return Response(
            {"success": True, "data": {"admin": AdminGrantSerializer(grant).data}},
            status=status.HTTP_201_CREATED,
        )


class AdminGrantDetailAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, grant_id):
        serializer = AdminGrantUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grant = admin_permissions.update_admin_grant(
            request.user,
            grant_id,
            context=AuditContext.from_request(request),
            **serializer.validated_data,
        )
        return Response({"success": True, "data": {"admin": AdminGrantSerializer(grant).data}})

    def delete(self, request, grant_id):
        grant = admin_permissions.deactivate_admin_grant(
            request.user,
            grant_id,
            context=AuditContext.from_request(request),
        )
        return Response({"success": True, "data": {"admin": AdminGrantSerializer(grant).data}})


class AuditLogListAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated, admin_permissions.HasAdminPermission]
    required_permission = Permission.AUDIT_LOGS

    def get(self, request):
        query = AuditLogQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = dict(query.validated_data)
        options = {
            "page": params.pop("page"),
            "limit": params.pop("limit", None),
            "sort_by": params.pop("sort_by"),
            "sort_order": params.pop("sort_order"),
        }
        result = query_audit_logs(request.user, filters=params, **options)
        return Response({
            "success": True,
            "data": {
                "logs": AuditLogSerializer(result["logs"], many=True).data,
                "pagination": result["pagination"],
            },
        })


class UserListAPIView(APIView):
    """Account directory with search and projection filters."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        query = UserListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = dict(query.validated_data)
        page = params.pop("page")
        limit = params.pop("limit")
        result = users.list_users(
            request.user,
            filters=params,
            page=page,
            limit=limit,
            context=AuditContext.from_request(request),
        )
        return Response({
            "success": True,
            "data": {
                "users": AdminUserSerializer(result["users"], many=True).data,
                "pagination": result["pagination"],
            },
        })


class UserDetailAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, user_id):
        result = users.get_user_detail(request.user, user_id, context=AuditContext.from_request(request))
        return Response({
            "success": True,
            "data": {
                "user": AdminUserSerializer(result["user"]).data,
                "subscriptions": SubscriptionSerializer(result["subscriptions"], many=True).data,
                "content_access": ContentAccessGrantSerializer(result["content_access"], many=True).data,
            },
        })


class StatsAPIView(APIView):
    """One analytics report; the URL picks which through ``report``."""

    permission_classes = [permissions.IsAuthenticated]
    report = None

    def get(self, request):
        stats = self.report(request.user, context=AuditContext.from_request(request))
        return Response({"success": True, "data": stats})
