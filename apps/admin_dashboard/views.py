# apps/admin_dashboard/views.py
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
import logging

from apps.users.permissions import IsAdminOnly
from .services import DashboardService

logger = logging.getLogger(__name__)


class DashboardStatsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminOnly]

    def get(self, request):
        return Response(DashboardService(logger=logger).stats(), status=status.HTTP_200_OK)
