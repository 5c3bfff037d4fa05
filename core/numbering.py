"""
Invoice and receipt number generation.

Format: ``{PREFIX}-{YYYYMMDD}-{6-digit sequence}``, the sequence restarting
at 000001 every day.
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from .models import NumberSequence

logger = logging.getLogger(__name__)


def format_number(prefix: str, day, sequence: int) -> str:
    return f"{prefix}-{day:%Y%m%d}-{sequence:06d}"


def generate_number(prefix: str, day=None) -> str:
    """
    Issue the next number for ``prefix`` on ``day`` (today by default).

    Must be called inside the caller's atomic block so that the counter
    increment commits or rolls back together with the document using it.
    """
    day = day or timezone.localdate()

    with transaction.atomic():
        sequence = (
            NumberSequence.objects.select_for_update()
            .filter(prefix=prefix, day=day)
            .first()
        )
        if sequence is None:
            try:
                with transaction.atomic():
                    sequence = NumberSequence.objects.create(prefix=prefix, day=day)
            except IntegrityError:
                # Another writer created today's row first
                sequence = NumberSequence.objects.select_for_update().get(
                    prefix=prefix, day=day
                )

        sequence.last_value += 1
        sequence.save(update_fields=['last_value'])

    number = format_number(prefix, day, sequence.last_value)
    logger.debug(f"Issued document number {number}")
    return number


def generate_invoice_number(day=None) -> str:
    return generate_number(settings.INVOICE_PREFIX, day)


def generate_receipt_number(day=None) -> str:
    return generate_number(settings.RECEIPT_PREFIX, day)
