"""
Serializers for payment models.
"""
from rest_framework import serializers

from .models import Payment, PaymentMethod


class PaymentMethodSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentMethod
        fields = [
            'id', 'name', 'method_type', 'account_number',
            'account_name', 'instructions', 'is_active'
        ]


class PaymentMethodMinimalSerializer(serializers.ModelSerializer):
    """Minimal serializer for nested payment method representation."""
    class Meta:
        model = PaymentMethod
        fields = ['id', 'name', 'method_type']


class PaymentSerializer(serializers.ModelSerializer):
    payment_method = PaymentMethodMinimalSerializer(read_only=True)
    transaction_ids = serializers.ListField(
        child=serializers.IntegerField(), read_only=True
    )
    transactions = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            'id', 'user', 'receipt_number', 'payment_method',
            'total_paid', 'transaction_ids', 'transactions', 'created_at'
        ]

    def get_transactions(self, obj):
        return [
            {
                'id': tx.id,
                'invoice_number': tx.invoice_number,
                'total_amount': str(tx.total_amount),
                'status': tx.status,
            }
            for tx in obj.transactions.all()
        ]


class BulkPaySerializer(serializers.Serializer):
    """
    Request format for POST /admin/transactions/bulk-pay/:
    {"user_id": 3, "transaction_ids": [10, 11], "payment_method_id": 1}
    """
    user_id = serializers.IntegerField(min_value=1)
    transaction_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False
    )
    payment_method_id = serializers.IntegerField(min_value=1)
