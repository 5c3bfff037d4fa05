"""
Inventory API Views.

Implements:
- Item catalog listing and admin maintenance
- Stock ledger reads (movements, per item fold, summary)
- Raw movement append and audited stock adjustment
- Per item stock history with reason breakdown
"""
import logging

from django.db.models import Q
from rest_framework import generics, status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsAdminOrReadOnly
from .filters import StockHistoryFilter, StockMovementFilter
from .models import Item, StockMovement
from .serializers import (
    ItemSerializer,
    StockAdjustmentSerializer,
    StockHistorySerializer,
    StockMovementCreateSerializer,
    StockMovementSerializer,
)
from .services import (
    adjust_stock_with_history,
    current_stock,
    get_item,
    item_history,
    reason_breakdown,
    record_movement,
    stock_summary,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Item Views
# =============================================================================

class ItemListCreateView(generics.ListCreateAPIView):
    """
    GET: List catalog items (admins also see inactive ones)
    POST: Create a new item (admin only)

    Query Parameters:
        - q: Keyword to search in name and description
        - size: Filter by size label
    """
    serializer_class = ItemSerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        queryset = Item.objects.all()
        if not self.request.user.is_staff:
            queryset = queryset.filter(status=Item.Status.ACTIVE)

        keyword = self.request.query_params.get('q', '').strip()
        if keyword:
            queryset = queryset.filter(
                Q(name__icontains=keyword) | Q(description__icontains=keyword)
            )

        size = self.request.query_params.get('size')
        if size:
            queryset = queryset.filter(size__iexact=size)

        return queryset.order_by('name')


class ItemDetailView(generics.RetrieveUpdateAPIView):
    """
    GET: Retrieve an item
    PUT/PATCH: Update an item (admin only)
    """
    serializer_class = ItemSerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        if self.request.user.is_staff:
            return Item.objects.all()
        return Item.objects.filter(status=Item.Status.ACTIVE)


# =============================================================================
# Stock Views
# =============================================================================

class StockListCreateView(generics.ListCreateAPIView):
    """
    GET: List all stock movements, newest first
    POST: Append a raw movement (no negative stock check)

    Query Parameters (GET):
        - item_id, type (IN/OUT)

    Request Body (POST):
    {"item_id": 1, "quantity": 10, "type": "IN", "note": "delivery"}
    """
    permission_classes = [IsAdminUser]
    filterset_class = StockMovementFilter

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return StockMovementCreateSerializer
        return StockMovementSerializer

    def get_queryset(self):
        return StockMovement.objects.select_related('item').order_by('-created_at', '-id')

    def create(self, request, *args, **kwargs):
        serializer = StockMovementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        movement = record_movement(
            data['item_id'], data['quantity'], data['type'], data['note']
        )
        logger.info(
            f"Raw stock movement #{movement.id} by {request.user}: "
            f"{movement.direction} {movement.quantity} of {movement.item.name}"
        )
        return Response(
            {
                'success': True,
                'message': 'Stock movement recorded',
                'data': StockMovementSerializer(movement).data
            },
            status=status.HTTP_201_CREATED
        )


class StockSummaryView(APIView):
    """GET: Current stock of every item."""
    permission_classes = [IsAdminUser]

    def get(self, request):
        return Response({'success': True, 'data': stock_summary()})


class ItemStockView(APIView):
    """GET: Current stock of one item plus its movements."""
    permission_classes = [IsAdminUser]

    def get(self, request, item_id):
        item = get_item(item_id)
        movements = StockMovement.objects.filter(item=item).order_by('-created_at', '-id')
        return Response({
            'success': True,
            'item_id': item.id,
            'current_stock': current_stock(item.id),
            'history': StockMovementSerializer(movements, many=True).data,
        })


class StockAdjustView(APIView):
    """
    POST: Manual stock change with an audit trail.

    Request Body:
    {"item_id": 1, "quantity": 3, "type": "OUT", "reason": "damaged", "note": ""}

    Returns:
        - 201: {stock, previous_stock, new_stock}
        - 400: OUT exceeds current stock, or invalid input
        - 404: Item not found
    """
    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = adjust_stock_with_history(
            item_id=data['item_id'],
            quantity=data['quantity'],
            direction=data['type'],
            reason=data['reason'],
            actor=request.user,
            note=data['note'],
        )
        return Response(
            {
                'success': True,
                'message': 'Stock updated',
                'data': {
                    'stock': StockMovementSerializer(result['stock']).data,
                    'history': StockHistorySerializer(result['history']).data,
                    'previous_stock': result['previous_stock'],
                    'new_stock': result['new_stock'],
                }
            },
            status=status.HTTP_201_CREATED
        )


class ItemStockHistoryView(generics.ListAPIView):
    """
    GET: Paginated audit history of one item plus a per reason breakdown.

    Query Parameters:
        - reason, type, start_date, end_date
    """
    serializer_class = StockHistorySerializer
    permission_classes = [IsAdminUser]
    filterset_class = StockHistoryFilter

    def get_queryset(self):
        return item_history(self.kwargs['item_id'])

    def list(self, request, *args, **kwargs):
        item = get_item(kwargs['item_id'])
        response = super().list(request, *args, **kwargs)
        response.data['item_id'] = item.id
        response.data['current_stock'] = current_stock(item.id)
        response.data['breakdown'] = reason_breakdown(
            item.id, queryset=self.filter_queryset(self.get_queryset())
        )
        return response
