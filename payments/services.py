"""
Payment Service Layer - bulk settlement of transactions.

bulk_pay() is all-or-nothing: every precondition is checked before the
first write, and the receipt and the status updates commit together.
"""
import logging
from decimal import Decimal
from typing import List

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from core.exceptions import DomainValidationError, InvalidStateError, ResourceNotFound
from core.numbering import generate_receipt_number
from .models import Payment, PaymentMethod

logger = logging.getLogger(__name__)


def get_payment_method(payment_method_id, require_active: bool = True) -> PaymentMethod:
    queryset = PaymentMethod.objects.all()
    if require_active:
        queryset = queryset.filter(is_active=True)
    try:
        return queryset.get(id=payment_method_id)
    except (PaymentMethod.DoesNotExist, ValueError, TypeError):
        raise ResourceNotFound("Payment method not found")


def _unique_ids(transaction_ids) -> List[int]:
    if not transaction_ids:
        raise DomainValidationError("Please provide at least one transaction")
    seen = []
    for tx_id in transaction_ids:
        if tx_id not in seen:
            seen.append(tx_id)
    return seen


def bulk_pay(user_id, transaction_ids, payment_method_id) -> Payment:
    """
    Pay several transactions of one user under a single receipt.

    Preconditions (any violation aborts the whole batch):
        - every transaction exists
        - every transaction belongs to ``user_id``
        - no transaction is PAID or CANCELLED

    Raises:
        DomainValidationError: Empty id list
        ResourceNotFound: Unknown user, payment method or transaction
        InvalidStateError: Ownership mismatch or already settled transaction
    """
    from orders.models import Transaction

    ids = _unique_ids(transaction_ids)

    User = get_user_model()
    if not User.objects.filter(id=user_id).exists():
        raise ResourceNotFound("User not found")
    payment_method = get_payment_method(payment_method_id)

    with transaction.atomic():
        transactions = list(
            Transaction.objects.select_for_update().filter(id__in=ids).order_by('id')
        )

        missing = set(ids) - {tx.id for tx in transactions}
        if missing:
            raise ResourceNotFound(
                f"Transactions not found: {', '.join(str(i) for i in sorted(missing))}"
            )

        foreign = [tx.invoice_number for tx in transactions if tx.user_id != int(user_id)]
        if foreign:
            raise InvalidStateError(
                f"Transactions do not belong to this user: {', '.join(foreign)}"
            )

        settled = [
            tx for tx in transactions
            if tx.status in (Transaction.Status.PAID, Transaction.Status.CANCELLED)
        ]
        if settled:
            details = ', '.join(f"{tx.invoice_number} ({tx.status})" for tx in settled)
            raise InvalidStateError(f"Transactions cannot be paid: {details}")

        total_paid = sum((tx.total_amount for tx in transactions), Decimal('0.00'))

        payment = Payment.objects.create(
            user_id=user_id,
            receipt_number=generate_receipt_number(),
            payment_method=payment_method,
            total_paid=total_paid,
        )

        updated = Transaction.objects.filter(id__in=ids).update(
            status=Transaction.Status.PAID,
            payment=payment,
            payment_method=payment_method,
            updated_at=timezone.now(),
        )

    logger.info(
        f"Payment {payment.receipt_number}: {updated} transactions paid, "
        f"total {total_paid}"
    )
    return payment
