"""
Order API Views.

Implements:
- /cart/ - Per user cart maintenance
- POST /checkout/ - Settle the cart into a PENDING transaction
- /checkout/orders/ - The user's own transactions and cancellation
- /admin/transactions/ - Admin listing and entry of transactions
"""
import logging

from django.conf import settings
from rest_framework import generics, status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.rate_limiting import rate_limit
from . import services
from .filters import TransactionFilter
from .models import Cart, Transaction
from .serializers import (
    CartLineSerializer,
    CartSerializer,
    CartUpdateSerializer,
    CheckoutSerializer,
    TransactionCreateSerializer,
    TransactionListSerializer,
    TransactionSerializer,
)

logger = logging.getLogger(__name__)


def transaction_queryset():
    return Transaction.objects.select_related(
        'user', 'payment_method', 'payment'
    ).prefetch_related('items__item')


def cart_response(cart, message, status_code=status.HTTP_200_OK):
    cart = Cart.objects.prefetch_related('items__item').get(id=cart.id)
    return Response(
        {'success': True, 'message': message, 'data': CartSerializer(cart).data},
        status=status_code
    )


# =============================================================================
# Cart Views
# =============================================================================

class CartView(APIView):
    """GET: The user's cart (created empty on first access)."""

    def get(self, request):
        return cart_response(services.get_cart(request.user), 'Cart retrieved')


class CartAddView(APIView):
    """
    POST: Add an item to the cart.

    Request Body: {"item_id": 1, "qty": 2}
    """

    def post(self, request):
        serializer = CartLineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = services.add_to_cart(
            request.user,
            serializer.validated_data['item_id'],
            serializer.validated_data['qty']
        )
        return cart_response(cart, 'Item added to cart')


class CartUpdateView(APIView):
    """
    PUT: Set the quantity of a cart line (0 removes it).

    Request Body: {"item_id": 1, "qty": 3}
    """

    def put(self, request):
        serializer = CartUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = services.update_cart_item(
            request.user,
            serializer.validated_data['item_id'],
            serializer.validated_data['qty']
        )
        return cart_response(cart, 'Cart updated')


class CartRemoveView(APIView):
    """DELETE: Remove one line from the cart."""

    def delete(self, request, item_id):
        cart = services.remove_from_cart(request.user, item_id)
        return cart_response(cart, 'Item removed from cart')


class CartClearView(APIView):
    """DELETE: Remove every line from the cart."""

    def delete(self, request):
        cart = services.clear_cart(request.user)
        return cart_response(cart, 'Cart cleared')


# =============================================================================
# Checkout Views
# =============================================================================

class CheckoutView(APIView):
    """
    POST: Checkout the cart.

    Request Body:
    {
        "payment_method_id": 1,
        "shipping_address": "Jl. Merdeka 1, Bandung",
        "notes": "call before delivery"
    }

    Returns:
        - 201: Transaction created (PENDING)
        - 400: Empty cart, insufficient stock or invalid input
        - 404: Payment method or item not found
    """

    @rate_limit(max_requests=settings.CHECKOUT_RATE_LIMIT, window_seconds=60)
    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        tx = services.checkout(
            request.user,
            data['payment_method_id'],
            data['shipping_address'],
            data['notes']
        )

        tx = transaction_queryset().get(id=tx.id)
        return Response(
            {
                'success': True,
                'message': 'Order created successfully',
                'data': TransactionSerializer(tx).data
            },
            status=status.HTTP_201_CREATED
        )


class UserOrderListView(generics.ListAPIView):
    """
    GET: The user's own transactions, newest first.

    Query Parameters:
        - status: PENDING, UNPAID, PAID or CANCELLED
    """
    serializer_class = TransactionListSerializer
    filterset_class = TransactionFilter

    def get_queryset(self):
        return transaction_queryset().filter(user=self.request.user).order_by('-created_at', '-id')


class UserOrderDetailView(generics.RetrieveAPIView):
    """GET: One of the user's own transactions with its lines."""
    serializer_class = TransactionSerializer

    def get_queryset(self):
        return transaction_queryset().filter(user=self.request.user)


class CancelOrderView(APIView):
    """
    PUT: Cancel one of the user's PENDING transactions.

    Returns:
        - 200: Transaction cancelled, stock restored
        - 400: Transaction is not PENDING
        - 404: Transaction not found for this user
    """

    def put(self, request, pk):
        tx = services.cancel_transaction(request.user, pk)
        tx = transaction_queryset().get(id=tx.id)
        return Response({
            'success': True,
            'message': 'Order cancelled successfully',
            'status': 'cancelled',
            'data': TransactionSerializer(tx).data
        })


# =============================================================================
# Admin Transaction Views
# =============================================================================

class TransactionListCreateView(generics.ListCreateAPIView):
    """
    GET: List all transactions
    POST: Enter a transaction on behalf of a customer

    Query Parameters (GET):
        - user_id, status, payment_method_id, start_date, end_date, invoice_number
    """
    permission_classes = [IsAdminUser]
    filterset_class = TransactionFilter

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return TransactionCreateSerializer
        return TransactionListSerializer

    def get_queryset(self):
        return transaction_queryset().order_by('-created_at', '-id')

    def create(self, request, *args, **kwargs):
        serializer = TransactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        tx = services.create_transaction(
            admin=request.user,
            user_id=data['user_id'],
            items=data['items'],
            payment_method_id=data.get('payment_method_id'),
            status=data['status'],
            shipping_address=data['shipping_address'],
            notes=data['notes'],
        )

        tx = transaction_queryset().get(id=tx.id)
        return Response(
            {
                'success': True,
                'message': 'Transaction created successfully',
                'data': TransactionSerializer(tx).data
            },
            status=status.HTTP_201_CREATED
        )


class TransactionDetailView(generics.RetrieveAPIView):
    """GET: Any transaction with its lines."""
    serializer_class = TransactionSerializer
    permission_classes = [IsAdminUser]

    def get_queryset(self):
        return transaction_queryset()


class AdminCancelTransactionView(APIView):
    """
    PUT: Cancel a PENDING or UNPAID transaction and restock its lines.

    Returns:
        - 200: Transaction cancelled, stock restored
        - 400: Transaction is PAID or already CANCELLED
        - 404: Transaction not found
    """
    permission_classes = [IsAdminUser]

    def put(self, request, pk):
        tx = services.admin_cancel_transaction(request.user, pk)
        tx = transaction_queryset().get(id=tx.id)
        return Response({
            'success': True,
            'message': 'Transaction cancelled successfully',
            'data': TransactionSerializer(tx).data
        })
