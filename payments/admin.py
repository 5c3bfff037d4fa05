"""
Django Admin configuration for payment models.
"""
from django.contrib import admin

from .models import Payment, PaymentMethod


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'method_type', 'account_number', 'is_active']
    list_filter = ['method_type', 'is_active']
    search_fields = ['name', 'account_number', 'account_name']
    ordering = ['name']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'receipt_number', 'user', 'payment_method', 'total_paid', 'transaction_count', 'created_at']
    list_filter = ['payment_method', 'created_at']
    search_fields = ['receipt_number', 'user__username']
    ordering = ['-created_at']
    readonly_fields = ['receipt_number', 'user', 'payment_method', 'total_paid', 'created_at']

    def transaction_count(self, obj):
        return obj.transactions.count()
    transaction_count.short_description = 'Transactions'

    def has_add_permission(self, request):
        # Receipts are only created through bulk payment
        return False
