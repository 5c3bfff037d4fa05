"""
Payment API Views.

Implements:
- GET /payment-methods/ - Active payment methods (public)
- POST /admin/transactions/bulk-pay/ - Pay several transactions at once
- GET /admin/payments/ - All receipts
- GET /payments/ - The user's own receipts
"""
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.rate_limiting import RateLimitMixin
from .models import Payment, PaymentMethod
from .serializers import BulkPaySerializer, PaymentMethodSerializer, PaymentSerializer
from .services import bulk_pay


def payment_queryset():
    return Payment.objects.select_related('payment_method').prefetch_related('transactions')


class PaymentMethodListView(generics.ListAPIView):
    serializer_class = PaymentMethodSerializer
    permission_classes = [AllowAny]
    pagination_class = None

    def get_queryset(self):
        return PaymentMethod.objects.filter(is_active=True).order_by('name')

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})


class BulkPayView(RateLimitMixin, APIView):
    """
    POST: Settle several transactions of one user under one receipt.

    Returns:
        - 201: Payment created, every transaction PAID
        - 400: A transaction is already PAID / CANCELLED or belongs to another user
        - 404: User, payment method or transaction not found
    """
    permission_classes = [IsAdminUser]
    rate_limit_max_requests = 30
    rate_limit_window_seconds = 60

    def post(self, request):
        serializer = BulkPaySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = bulk_pay(
            data['user_id'],
            data['transaction_ids'],
            data['payment_method_id']
        )

        payment = payment_queryset().get(id=payment.id)
        return Response(
            {
                'success': True,
                'message': f"{len(payment.transaction_ids)} transactions marked as paid",
                'data': PaymentSerializer(payment).data
            },
            status=status.HTTP_201_CREATED
        )


class AdminPaymentListView(generics.ListAPIView):
    """
    GET: All payments, newest first.

    Query Parameters:
        - user_id: Filter by customer
    """
    serializer_class = PaymentSerializer
    permission_classes = [IsAdminUser]

    def get_queryset(self):
        queryset = payment_queryset()
        user_id = self.request.query_params.get('user_id')
        if user_id and user_id.isdigit():
            queryset = queryset.filter(user_id=user_id)
        return queryset.order_by('-created_at', '-id')


class AdminPaymentDetailView(generics.RetrieveAPIView):
    serializer_class = PaymentSerializer
    permission_classes = [IsAdminUser]

    def get_queryset(self):
        return payment_queryset()


class UserPaymentListView(generics.ListAPIView):
    """GET: The user's own payments."""
    serializer_class = PaymentSerializer

    def get_queryset(self):
        return payment_queryset().filter(user=self.request.user).order_by('-created_at', '-id')


class UserPaymentDetailView(generics.RetrieveAPIView):
    serializer_class = PaymentSerializer

    def get_queryset(self):
        return payment_queryset().filter(user=self.request.user)
