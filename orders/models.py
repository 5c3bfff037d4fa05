"""
Order Models - Cart and settled Transaction entities.

Transaction Status Flow:
    PENDING  -> CANCELLED (owner cancels, stock restored)
    PENDING  -> PAID      (bulk payment)
    UNPAID   -> PAID      (bulk payment)

PAID is only ever set by payments.services.bulk_pay.
"""
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from inventory.models import Item
from payments.models import Payment, PaymentMethod


class Cart(models.Model):
    """
    One mutable cart per user. Emptied, never deleted, on checkout.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='cart'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Cart'
        verbose_name_plural = 'Carts'

    def __str__(self):
        return f"Cart of {self.user}"

    @property
    def total(self) -> Decimal:
        """Cart value at current (live) item prices."""
        return sum(
            (line.item.price * line.qty for line in self.items.all()),
            Decimal('0.00')
        )


class CartItem(models.Model):
    """
    Desired quantity of one item in a cart. Lines keep insertion order.
    """
    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name='items'
    )
    item = models.ForeignKey(
        Item,
        on_delete=models.CASCADE,
        related_name='cart_lines'
    )
    qty = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Cart Item'
        verbose_name_plural = 'Cart Items'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'item'], name='unique_cart_item')
        ]

    def __str__(self):
        return f"{self.qty}x {self.item.name}"

    @property
    def subtotal(self) -> Decimal:
        return self.item.price * self.qty


class Transaction(models.Model):
    """
    Settled order with an invoice number and immutable priced lines.

    Only status, payment and payment_method change after creation.
    """

    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        UNPAID = 'UNPAID', 'Unpaid'
        PAID = 'PAID', 'Paid'
        CANCELLED = 'CANCELLED', 'Cancelled'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='transactions',
        help_text="Customer the transaction belongs to"
    )
    invoice_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="INV-YYYYMMDD-NNNNNN"
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.UNPAID,
        db_index=True
    )
    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    payment_method = models.ForeignKey(
        PaymentMethod,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transactions'
    )
    payment = models.ForeignKey(
        Payment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transactions'
    )
    shipping_address = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Transaction'
        verbose_name_plural = 'Transactions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'status'], name='orders_tran_user_id_2a6f93_idx'),
            models.Index(fields=['user', 'created_at'], name='orders_tran_user_id_c81e05_idx'),
            models.Index(fields=['status', 'created_at'], name='orders_tran_status_7b3d2e_idx'),
        ]

    def __str__(self):
        return f"{self.invoice_number} ({self.status})"

    @property
    def is_paid(self) -> bool:
        return self.status == self.Status.PAID

    @property
    def is_cancellable(self) -> bool:
        return self.status == self.Status.PENDING

    @property
    def is_admin_cancellable(self) -> bool:
        return self.status in (self.Status.PENDING, self.Status.UNPAID)


class TransactionItem(models.Model):
    """
    Priced line of a transaction.

    unit_price is copied from the item at purchase time.
    """
    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        related_name='items'
    )
    item = models.ForeignKey(
        Item,
        on_delete=models.PROTECT,
        related_name='transaction_lines'
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        verbose_name = 'Transaction Item'
        verbose_name_plural = 'Transaction Items'
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity}x {self.item.name} @ {self.unit_price}"
