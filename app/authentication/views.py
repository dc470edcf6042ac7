"""
Views for authentication.

Token issuance is provided by djangorestframework-simplejwt (wired in
urls.py). This module adds the current-user endpoint other clients use to
learn their id and role.
"""

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import UserSummarySerializer


class CurrentUserView(APIView):
    """
    Return the authenticated user.

    GET /api/v1/auth/me/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user",
        description="Return the id, name and role of the authenticated user.",
        responses={200: UserSummarySerializer},
        tags=["Auth"],
    )
    def get(self, request):
        return Response(UserSummarySerializer(request.user).data)
