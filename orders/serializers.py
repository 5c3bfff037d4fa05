"""
Serializers for cart and transaction models.
"""
from rest_framework import serializers

from inventory.serializers import ItemMinimalSerializer
from payments.serializers import PaymentMethodMinimalSerializer
from .models import Cart, CartItem, Transaction, TransactionItem


class CartItemSerializer(serializers.ModelSerializer):
    item = ItemMinimalSerializer(read_only=True)
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = ['id', 'item', 'qty', 'subtotal']


class CartSerializer(serializers.ModelSerializer):
    """Cart with its lines and the total at live prices."""
    items = CartItemSerializer(many=True, read_only=True)
    total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Cart
        fields = ['id', 'items', 'total', 'updated_at']


class CartLineSerializer(serializers.Serializer):
    """Request format for cart add: {"item_id": 1, "qty": 2}"""
    item_id = serializers.IntegerField(min_value=1)
    qty = serializers.IntegerField(min_value=1)


class CartUpdateSerializer(CartLineSerializer):
    """Cart update accepts 0 (remove the line); negatives are rejected."""
    qty = serializers.IntegerField()

    def validate_qty(self, value):
        if value < 0:
            raise serializers.ValidationError("Quantity cannot be negative")
        return value


class CheckoutSerializer(serializers.Serializer):
    """
    Request format for POST /checkout/:
    {"payment_method_id": 1, "shipping_address": "...", "notes": "..."}
    """
    payment_method_id = serializers.IntegerField(min_value=1)
    shipping_address = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class TransactionItemSerializer(serializers.ModelSerializer):
    item = ItemMinimalSerializer(read_only=True)

    class Meta:
        model = TransactionItem
        fields = ['id', 'item', 'quantity', 'unit_price', 'subtotal']


class TransactionSerializer(serializers.ModelSerializer):
    """
    Transaction with nested lines.
    Views prefetch items__item for optimized queries.
    """
    items = TransactionItemSerializer(many=True, read_only=True)
    payment_method = PaymentMethodMinimalSerializer(read_only=True)
    receipt_number = serializers.CharField(
        source='payment.receipt_number', read_only=True, default=None
    )

    class Meta:
        model = Transaction
        fields = [
            'id', 'user', 'invoice_number', 'status', 'total_amount',
            'payment_method', 'payment', 'receipt_number',
            'shipping_address', 'notes', 'items',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields


class TransactionListSerializer(serializers.ModelSerializer):
    """Optimized serializer for listing transactions."""
    user_name = serializers.CharField(source='user.get_username', read_only=True)
    payment_method_name = serializers.CharField(
        source='payment_method.name', read_only=True, default=None
    )
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            'id', 'user', 'user_name', 'invoice_number', 'status',
            'total_amount', 'payment_method_name', 'payment',
            'item_count', 'created_at'
        ]

    def get_item_count(self, obj):
        # Use prefetched items if available
        if hasattr(obj, '_prefetched_objects_cache') and 'items' in obj._prefetched_objects_cache:
            return len(obj.items.all())
        return obj.items.count()


class TransactionLineCreateSerializer(serializers.Serializer):
    item_id = serializers.IntegerField(min_value=1)
    qty = serializers.IntegerField(min_value=1)


class TransactionCreateSerializer(serializers.Serializer):
    """
    Request format for POST /admin/transactions/:
    {
        "user_id": 3,
        "items": [{"item_id": 1, "qty": 2}],
        "payment_method_id": 1,
        "status": "UNPAID"
    }
    """
    user_id = serializers.IntegerField(min_value=1)
    items = TransactionLineCreateSerializer(many=True)
    payment_method_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    status = serializers.ChoiceField(
        choices=[Transaction.Status.PENDING, Transaction.Status.UNPAID],
        default=Transaction.Status.UNPAID
    )
    shipping_address = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")

        item_ids = [line['item_id'] for line in value]
        if len(item_ids) != len(set(item_ids)):
            raise serializers.ValidationError("Duplicate items in transaction lines")

        return value
