"""
API views for the accounts app.

Views parse input, build the audit context from the request and call a
single service function; failures are rendered by
``core.exceptions.api_exception_handler``.
"""

from django.contrib.auth import get_user_model
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from audit.context import AuditContext
from core.exceptions import Unauthorized
from . import authentication, registration
from .serializers import (
    LoginSerializer,
    LogoutSerializer,
    PasswordChangeSerializer,
    PaymentSubmissionSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserSerializer,
)

User = get_user_model()


def issue_tokens(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {"access": str(refresh.access_token), "refresh": str(refresh)}


class RegisterAPIView(APIView):
    """
    Public registration endpoint.

    Accounts start in ``pending_payment`` (or ``payment_submitted`` when a
    payment-proof reference is included) and cannot log in until approved,
    so no tokens are issued here.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = registration.register(
            context=AuditContext.from_request(request),
            **serializer.validated_data,
        )
        message = (
            "Registration submitted successfully. Please wait for admin confirmation."
            if user.payment_proof_reference
            else "User registered successfully."
        )
        return Response(
            {"success": True, "message": message, "data": {"user": UserSerializer(user).data}},
            status=status.HTTP_201_CREATED,
        )


class LoginAPIView(APIView):
    """Credential check with lockout; returns the profile and a JWT pair."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = authentication.login(
            serializer.validated_data["email"],
            serializer.validated_data["password"],
            context=AuditContext.from_request(request),
        )
        return Response(
            {
                "success": True,
                "message": "Login successful",
                "data": {"user": UserSerializer(user).data, **issue_tokens(user)},
            },
            status=status.HTTP_200_OK,
        )


class PaymentSubmissionAPIView(APIView):
    """Attach (or replace) the payment-proof reference of a pending registration."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = PaymentSubmissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # Pending accounts cannot log in yet, so they identify with credentials
        user = request.user if request.user.is_authenticated else self._user_from_credentials(request)
        user = registration.submit_payment(
            user,
            serializer.validated_data["payment_proof_reference"],
            context=AuditContext.from_request(request).for_actor(user),
        )
        return Response(
            {"success": True, "data": {"user": UserSerializer(user).data}},
            status=status.HTTP_200_OK,
        )

    def _user_from_credentials(self, request):
        credentials = LoginSerializer(data=request.data)
        credentials.is_valid(raise_exception=True)
        user = User.objects.filter(
            email=User.objects.normalize_email(credentials.validated_data["email"])
        ).first()
        if user is None:
            raise Unauthorized("Invalid credentials.")
        return authentication.check_credentials(
            user,
            credentials.validated_data["password"],
            AuditContext.from_request(request),
        )


class UserDetailAPIView(generics.RetrieveUpdateAPIView):
    """API endpoint for retrieving and updating the current user."""

    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user

    def get_serializer_class(self):
        if self.request.method in ("PUT", "PATCH"):
            return ProfileUpdateSerializer
        return UserSerializer

    def update(self, request, *args, **kwargs):
        super().update(request, *args, **kwargs)
        return Response(UserSerializer(self.get_object()).data)


class PasswordChangeAPIView(APIView):
    """API endpoint for changing password."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        authentication.change_password(
            request.user,
            serializer.validated_data["old_password"],
            serializer.validated_data["new_password"],
            context=AuditContext.from_request(request),
        )
        return Response(
            {"success": True, "message": "Password changed successfully."},
            status=status.HTTP_200_OK,
        )


class LogoutAPIView(APIView):
    """Blacklist the caller's refresh token."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        authentication.logout(
            request.user,
            serializer.validated_data["refresh"],
            context=AuditContext.from_request(request),
        )
        return Response(
            {"success": True, "message": "Logout successful"},
            status=status.HTTP_200_OK,
        )
