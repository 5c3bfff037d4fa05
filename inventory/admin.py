"""
Django Admin configuration for inventory models.
"""
from django.contrib import admin

from .models import Item, StockHistory, StockMovement
from .services import current_stock


class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    """Ledger rows are append-only; the admin can only browse them."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'size', 'price', 'status', 'stock', 'created_at']
    list_filter = ['status', 'size', 'created_at']
    search_fields = ['name', 'description']
    ordering = ['name']

    def stock(self, obj):
        return current_stock(obj.id)
    stock.short_description = 'Current Stock'


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyLedgerAdmin):
    list_display = ['id', 'item', 'direction', 'quantity', 'note', 'created_at']
    list_filter = ['direction', 'created_at']
    search_fields = ['item__name', 'note']
    ordering = ['-created_at']
    raw_id_fields = ['item']


@admin.register(StockHistory)
class StockHistoryAdmin(ReadOnlyLedgerAdmin):
    list_display = [
        'id', 'item', 'direction', 'quantity', 'reason',
        'previous_stock', 'new_stock', 'performed_by_name', 'created_at'
    ]
    list_filter = ['reason', 'direction', 'reference_type', 'created_at']
    search_fields = ['item__name', 'note', 'reference_id', 'performed_by_name']
    ordering = ['-created_at']
    raw_id_fields = ['item', 'movement', 'performed_by']
