"""
Serializers for report rows.

Reports are aggregates rather than model instances, so these are plain
serializers used for output only.
"""
from rest_framework import serializers

MONEY = {'max_digits': 14, 'decimal_places': 2}


class BestSellerSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    name = serializers.CharField()
    size = serializers.CharField()
    price = serializers.DecimalField(**MONEY)
    total_quantity_sold = serializers.IntegerField()
    total_revenue = serializers.DecimalField(**MONEY)
    transaction_count = serializers.IntegerField()


class SalesBucketSerializer(serializers.Serializer):
    date = serializers.CharField()
    total_sales = serializers.DecimalField(**MONEY)
    transaction_count = serializers.IntegerField()
    items_sold = serializers.IntegerField()


class SalesTotalsSerializer(serializers.Serializer):
    total_sales = serializers.DecimalField(**MONEY)
    transaction_count = serializers.IntegerField()
    items_sold = serializers.IntegerField()


class SalesTrendSerializer(serializers.Serializer):
    sales_by_date = SalesBucketSerializer(many=True)
    totals = SalesTotalsSerializer()


class RevenueByPaymentMethodSerializer(serializers.Serializer):
    payment_method_id = serializers.IntegerField(allow_null=True)
    name = serializers.CharField()
    type = serializers.CharField()
    total_revenue = serializers.DecimalField(**MONEY)
    transaction_count = serializers.IntegerField()


class TransactionStatsSerializer(serializers.Serializer):
    total_transactions = serializers.IntegerField()
    pending_transactions = serializers.IntegerField()
    unpaid_transactions = serializers.IntegerField()
    paid_transactions = serializers.IntegerField()
    cancelled_transactions = serializers.IntegerField()
    total_revenue = serializers.DecimalField(**MONEY)
    avg_transaction_value = serializers.DecimalField(**MONEY)
