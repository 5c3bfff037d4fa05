"""
Celery tasks for transaction processing.

Tasks:
    - send_transaction_confirmation: Async notification after checkout
    - generate_daily_sales_report: Yesterday's paid sales summary
"""
import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def send_transaction_confirmation(self, transaction_id: int):
    """
    Async task triggered after a successful checkout.

    Args:
        transaction_id: ID of the settled transaction

    Returns:
        Dict with confirmation details
    """
    from orders.models import Transaction

    try:
        tx = Transaction.objects.select_related(
            'user', 'payment_method'
        ).prefetch_related('items__item').get(id=transaction_id)
    except Transaction.DoesNotExist:
        logger.error(f"Transaction #{transaction_id} not found for confirmation")
        return {'status': 'error', 'message': f'Transaction {transaction_id} not found'}

    if tx.status not in (Transaction.Status.PENDING, Transaction.Status.UNPAID):
        logger.warning(
            f"{tx.invoice_number} is {tx.status}, skipping confirmation"
        )
        return {
            'status': 'skipped',
            'message': f'Transaction {transaction_id} is {tx.status}'
        }

    items_summary = [
        f"  - {line.quantity}x {line.item.name} {line.item.size} @ {line.unit_price}"
        for line in tx.items.all()
    ]
    method = tx.payment_method.name if tx.payment_method else 'not selected'

    confirmation_message = f"""
    ===============================================
    ORDER CONFIRMATION - {tx.invoice_number}
    ===============================================
    Customer: {tx.user}
    Payment method: {method}
    Status: {tx.status}
    Total: {tx.total_amount}

    Items:
{chr(10).join(items_summary)}

    Ship to: {tx.shipping_address}
    Created: {tx.created_at.strftime('%Y-%m-%d %H:%M:%S')}
    ===============================================
    """

    logger.info(confirmation_message)

    return {
        'status': 'success',
        'transaction_id': tx.id,
        'message': f'Confirmation sent for {tx.invoice_number}'
    }


@shared_task
def generate_daily_sales_report():
    """
    Log yesterday's paid sales. Can be scheduled via Celery Beat.
    """
    from reports.services import sales_trend

    yesterday = timezone.localdate() - timedelta(days=1)
    report = sales_trend(group_by='day', start_date=yesterday, end_date=yesterday)
    totals = report['totals']

    logger.info(f"""
    ===============================================
    DAILY SALES REPORT - {yesterday}
    ===============================================
    Paid transactions: {totals['transaction_count']}
    Items sold: {totals['items_sold']}
    Revenue: {totals['total_sales']}
    ===============================================
    """)

    return {
        'date': yesterday.isoformat(),
        'transaction_count': totals['transaction_count'],
        'items_sold': totals['items_sold'],
        'total_sales': str(totals['total_sales']),
    }
