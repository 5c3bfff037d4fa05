"""
Inventory Models - Catalog items and the stock ledger.

Models:
    - Item: LPG cylinder product offered in the catalog
    - StockMovement: append-only signed quantity movement (IN / OUT)
    - StockHistory: reason coded audit row with before/after snapshots

Current stock is never stored. It is the fold of all StockMovement rows of
an item: sum(IN) - sum(OUT).
"""
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class Direction(models.TextChoices):
    IN = 'IN', 'Stock In'
    OUT = 'OUT', 'Stock Out'


class Item(models.Model):
    """
    Item entity representing a gas cylinder available for sale.
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        INACTIVE = 'inactive', 'Inactive'

    name = models.CharField(
        max_length=200,
        db_index=True,
        help_text="Item name for display and search"
    )
    description = models.TextField(
        blank=True,
        default='',
        help_text="Optional item description"
    )
    size = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Cylinder size label, e.g. 3 kg or 12 kg"
    )
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Current unit price (cannot be negative)"
    )
    image = models.CharField(
        max_length=500,
        blank=True,
        default='',
        help_text="Image URL"
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
        help_text="Whether the item is listed in the catalog"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Item'
        verbose_name_plural = 'Items'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name', 'status'], name='inventory_i_name_9b1f0e_idx'),
            models.Index(fields=['size', 'status'], name='inventory_i_size_4c2d7a_idx'),
        ]

    def __str__(self):
        return f"{self.name} {self.size} ({self.price})"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE


class AppendOnlyModel(models.Model):
    """Base class for ledger rows: created once, never edited or deleted."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError(f"{self.__class__.__name__} records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            f"{self.__class__.__name__} records are immutable and cannot be deleted"
        )


class StockMovement(AppendOnlyModel):
    """
    Ledger entry: one signed quantity change for one item.
    """
    item = models.ForeignKey(
        Item,
        on_delete=models.PROTECT,
        related_name='stock_movements',
        help_text="Item whose stock moved"
    )
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Magnitude of the movement"
    )
    direction = models.CharField(
        max_length=3,
        choices=Direction.choices,
        help_text="IN adds to stock, OUT removes from it"
    )
    note = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'Stock Movement'
        verbose_name_plural = 'Stock Movements'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['item', 'direction'], name='inventory_s_item_id_5e8a31_idx'),
            models.Index(fields=['item', 'created_at'], name='inventory_s_item_id_a07c42_idx'),
        ]

    def __str__(self):
        sign = '+' if self.direction == Direction.IN else '-'
        return f"{self.item.name}: {sign}{self.quantity}"

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.direction == Direction.IN else -self.quantity


class StockHistory(AppendOnlyModel):
    """
    Audit trail row written next to a StockMovement.

    previous_stock / new_stock are snapshots of the fold at write time and
    cannot be recomputed later if movements are appended out of order.
    """

    class Reason(models.TextChoices):
        RESTOCK = 'restock', 'Restock'
        SOLD = 'sold', 'Sold'
        PURCHASED = 'purchased', 'Purchased'
        DAMAGED = 'damaged', 'Damaged'
        CORRECTION = 'correction', 'Correction'
        RETURN = 'return', 'Return'
        INITIAL = 'initial', 'Initial Stock'
        OTHER = 'other', 'Other'

    class ActorType(models.TextChoices):
        USER = 'User', 'User'
        ADMIN = 'Admin', 'Admin'

    class ReferenceType(models.TextChoices):
        TRANSACTION = 'transaction', 'Transaction'
        ORDER = 'order', 'Order'
        MANUAL = 'manual', 'Manual'
        SYSTEM = 'system', 'System'

    item = models.ForeignKey(
        Item,
        on_delete=models.PROTECT,
        related_name='stock_history'
    )
    movement = models.OneToOneField(
        StockMovement,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='history',
        help_text="Ledger entry this audit row describes"
    )
    direction = models.CharField(max_length=3, choices=Direction.choices)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    reason = models.CharField(max_length=20, choices=Reason.choices, db_index=True)
    note = models.TextField(blank=True, default='')
    previous_stock = models.IntegerField(help_text="Fold before the movement")
    new_stock = models.IntegerField(help_text="Fold after the movement")
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='stock_history'
    )
    performed_by_type = models.CharField(
        max_length=5,
        choices=ActorType.choices,
        default=ActorType.ADMIN
    )
    performed_by_name = models.CharField(max_length=150, default='System')
    reference_id = models.CharField(max_length=64, blank=True, default='')
    reference_type = models.CharField(
        max_length=20,
        choices=ReferenceType.choices,
        default=ReferenceType.MANUAL
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'Stock History'
        verbose_name_plural = 'Stock History'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['item', 'created_at'], name='inventory_s_item_id_3f9d18_idx'),
            models.Index(fields=['performed_by'], name='inventory_s_perform_b6e250_idx'),
        ]

    def __str__(self):
        return (
            f"{self.item.name} {self.direction} {self.quantity} "
            f"({self.reason}): {self.previous_stock} -> {self.new_stock}"
        )
