"""
Report API Views (admin only, read-only).

Implements:
- GET /reports/best-sellers/ - Items ranked by quantity sold
- GET /reports/sales/ - Sales per day / week / month
- GET /reports/revenue-by-payment/ - Revenue per payment method
- GET /reports/stats/ - Transaction counts and paid revenue

Query Parameters (all reports):
    - start_date, end_date: ISO dates, inclusive
"""
from datetime import date

from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import DomainValidationError
from . import services
from .serializers import (
    BestSellerSerializer,
    RevenueByPaymentMethodSerializer,
    SalesTrendSerializer,
    TransactionStatsSerializer,
)


def _parse_date(value, name):
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise DomainValidationError(f"{name} must be a date in YYYY-MM-DD format")


class ReportView(APIView):
    permission_classes = [IsAdminUser]

    def date_window(self, request):
        start_date = _parse_date(request.query_params.get('start_date'), 'start_date')
        end_date = _parse_date(request.query_params.get('end_date'), 'end_date')
        if start_date and end_date and start_date > end_date:
            raise DomainValidationError("start_date must not be after end_date")
        return {'start_date': start_date, 'end_date': end_date}


class BestSellersView(ReportView):
    """GET: Best selling items. Extra parameter: limit (1-100, default 10)."""

    def get(self, request):
        try:
            limit = int(request.query_params.get('limit', 10))
        except ValueError:
            raise DomainValidationError("limit must be an integer")
        if not 1 <= limit <= 100:
            raise DomainValidationError("limit must be between 1 and 100")

        rows = services.best_sellers(limit=limit, **self.date_window(request))
        return Response({
            'success': True,
            'count': len(rows),
            'data': BestSellerSerializer(rows, many=True).data
        })


class SalesReportView(ReportView):
    """GET: Sales trend. Extra parameter: group_by (day, week, month)."""

    def get(self, request):
        group_by = request.query_params.get('group_by', 'day')
        if group_by not in services.GROUPINGS:
            raise DomainValidationError("group_by must be one of: day, week, month")

        report = services.sales_trend(group_by=group_by, **self.date_window(request))
        return Response({'success': True, 'data': SalesTrendSerializer(report).data})


class RevenueByPaymentMethodView(ReportView):
    """GET: Paid revenue grouped by payment method."""

    def get(self, request):
        rows = services.revenue_by_payment_method(**self.date_window(request))
        serializer = RevenueByPaymentMethodSerializer(rows, many=True)
        return Response({'success': True, 'data': serializer.data})


class TransactionStatsView(ReportView):
    """GET: Transaction statistics overall or for one customer (user_id)."""

    def get(self, request):
        user_id = request.query_params.get('user_id')
        if user_id and not user_id.isdigit():
            raise DomainValidationError("user_id must be an integer")

        stats = services.transaction_stats(user_id=user_id)
        return Response({'success': True, 'data': TransactionStatsSerializer(stats).data})
