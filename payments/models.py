"""
Payment Models - payment methods and receipts.

A Payment groups one or more settled transactions of a single user under
one receipt. Its transactions point back to it through Transaction.payment.
"""
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class PaymentMethod(models.Model):
    """
    Payment channel offered at checkout. Reference data.
    """

    class Type(models.TextChoices):
        BANK_TRANSFER = 'bank_transfer', 'Bank Transfer'
        E_WALLET = 'e_wallet', 'E-Wallet'
        COD = 'cod', 'Cash on Delivery'
        QRIS = 'qris', 'QRIS'

    name = models.CharField(max_length=100, help_text="Display name")
    method_type = models.CharField(max_length=20, choices=Type.choices)
    account_number = models.CharField(max_length=64, blank=True, default='')
    account_name = models.CharField(max_length=150, blank=True, default='')
    instructions = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Payment Method'
        verbose_name_plural = 'Payment Methods'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.get_method_type_display()})"


class Payment(models.Model):
    """
    Receipt for a batch of transactions paid together.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='payments',
        help_text="Customer whose transactions were paid"
    )
    receipt_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="PAY-YYYYMMDD-NNNNNN"
    )
    payment_method = models.ForeignKey(
        PaymentMethod,
        on_delete=models.PROTECT,
        related_name='payments'
    )
    total_paid = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Sum of the paid transactions' totals"
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='payments_pa_user_id_8d4c1b_idx'),
        ]

    def __str__(self):
        return f"{self.receipt_number} ({self.total_paid})"

    @property
    def transaction_ids(self):
        return [tx.id for tx in self.transactions.all()]
