"""
Serializers for inventory models.
Provides data validation and JSON conversion for API endpoints.
"""
from rest_framework import serializers

from .models import Direction, Item, StockHistory, StockMovement


class ItemSerializer(serializers.ModelSerializer):
    """Serializer for Item model."""

    class Meta:
        model = Item
        fields = [
            'id', 'name', 'description', 'size', 'price',
            'image', 'status', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative")
        return value


class ItemMinimalSerializer(serializers.ModelSerializer):
    """Minimal serializer for nested item representation."""
    class Meta:
        model = Item
        fields = ['id', 'name', 'size', 'price', 'image']


class StockMovementSerializer(serializers.ModelSerializer):
    item = ItemMinimalSerializer(read_only=True)

    class Meta:
        model = StockMovement
        fields = ['id', 'item', 'quantity', 'direction', 'note', 'created_at']


class StockMovementCreateSerializer(serializers.Serializer):
    """
    Request format for POST /stock/:
    {"item_id": 1, "quantity": 10, "type": "IN", "note": "delivery"}
    """
    item_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    type = serializers.ChoiceField(choices=Direction.choices)
    note = serializers.CharField(required=False, allow_blank=True, default='')


class StockAdjustmentSerializer(StockMovementCreateSerializer):
    """Request format for POST /stock/add-with-history/ (adds a reason)."""
    reason = serializers.ChoiceField(choices=StockHistory.Reason.choices)


class StockHistorySerializer(serializers.ModelSerializer):
    performed_by = serializers.SerializerMethodField()

    class Meta:
        model = StockHistory
        fields = [
            'id', 'item', 'direction', 'quantity', 'reason', 'note',
            'previous_stock', 'new_stock', 'performed_by',
            'reference_id', 'reference_type', 'created_at'
        ]

    def get_performed_by(self, obj):
        return {
            'id': obj.performed_by_id,
            'type': obj.performed_by_type,
            'name': obj.performed_by_name,
        }
