"""
Django Admin configuration for cart and transaction models.
"""
from django.contrib import admin
from .models import Cart, CartItem, Transaction, TransactionItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    raw_id_fields = ['item']


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'line_count', 'updated_at']
    search_fields = ['user__username']
    ordering = ['-updated_at']
    inlines = [CartItemInline]

    def line_count(self, obj):
        return obj.items.count()
    line_count.short_description = 'Lines'


class TransactionItemInline(admin.TabularInline):
    model = TransactionItem
    extra = 0
    readonly_fields = ['item', 'quantity', 'unit_price', 'subtotal']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['id', 'invoice_number', 'user', 'status', 'total_amount', 'payment_method', 'created_at']
    list_filter = ['status', 'payment_method', 'created_at']
    search_fields = ['invoice_number', 'user__username']
    ordering = ['-created_at']
    readonly_fields = [
        'user', 'invoice_number', 'status', 'total_amount', 'payment_method',
        'payment', 'created_at', 'updated_at'
    ]
    inlines = [TransactionItemInline]

    def has_add_permission(self, request):
        # Transactions only come from checkout or the admin entry endpoint
        return False
