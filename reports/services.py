"""
Reporting Service Layer - read-only aggregates over PAID transactions.

All date windows are inclusive: start_date <= created_at.date() <= end_date.
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from django.db.models import Avg, Count, Q, Sum
from django.db.models.functions import TruncDay, TruncMonth, TruncWeek

from orders.models import Transaction, TransactionItem

GROUPINGS = {
    'day': TruncDay,
    'week': TruncWeek,
    'month': TruncMonth,
}


def _window(prefix: str, start_date: Optional[date], end_date: Optional[date]) -> Q:
    condition = Q(**{f'{prefix}status': Transaction.Status.PAID})
    if start_date:
        condition &= Q(**{f'{prefix}created_at__date__gte': start_date})
    if end_date:
        condition &= Q(**{f'{prefix}created_at__date__lte': end_date})
    return condition


def bucket_label(period, group_by: str) -> str:
    if group_by == 'week':
        iso_year, iso_week, _ = period.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if group_by == 'month':
        return period.strftime('%Y-%m')
    return period.strftime('%Y-%m-%d')


def best_sellers(
    limit: int = 10,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Dict]:
    """Items ranked by quantity sold, descending."""
    rows = (
        TransactionItem.objects.filter(_window('transaction__', start_date, end_date))
        .values('item_id', 'item__name', 'item__size', 'item__price')
        .annotate(
            total_quantity_sold=Sum('quantity'),
            total_revenue=Sum('subtotal'),
            transaction_count=Count('transaction', distinct=True),
        )
        .order_by('-total_quantity_sold', 'item__name')[:limit]
    )
    return [
        {
            'item_id': row['item_id'],
            'name': row['item__name'],
            'size': row['item__size'],
            'price': row['item__price'],
            'total_quantity_sold': row['total_quantity_sold'],
            'total_revenue': row['total_revenue'],
            'transaction_count': row['transaction_count'],
        }
        for row in rows
    ]


def sales_trend(
    group_by: str = 'day',
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict:
    """
    Revenue, transaction count and items sold per period, ascending.

    Transaction totals and line quantities are aggregated separately so the
    line join never multiplies transaction totals.
    """
    trunc = GROUPINGS[group_by]

    transaction_rows = (
        Transaction.objects.filter(_window('', start_date, end_date))
        .annotate(period=trunc('created_at'))
        .values('period')
        .annotate(total_sales=Sum('total_amount'), transaction_count=Count('id'))
        .order_by('period')
    )
    item_rows = (
        TransactionItem.objects.filter(_window('transaction__', start_date, end_date))
        .annotate(period=trunc('transaction__created_at'))
        .values('period')
        .annotate(items_sold=Sum('quantity'))
        .order_by('period')
    )

    buckets = {}
    for row in transaction_rows:
        label = bucket_label(row['period'], group_by)
        bucket = buckets.setdefault(label, {
            'date': label,
            'total_sales': Decimal('0.00'),
            'transaction_count': 0,
            'items_sold': 0,
        })
        bucket['total_sales'] += row['total_sales'] or Decimal('0.00')
        bucket['transaction_count'] += row['transaction_count']
    for row in item_rows:
        label = bucket_label(row['period'], group_by)
        if label in buckets:
            buckets[label]['items_sold'] += row['items_sold'] or 0

    sales_by_date = [buckets[label] for label in sorted(buckets)]
    totals = {
        'total_sales': sum((b['total_sales'] for b in sales_by_date), Decimal('0.00')),
        'transaction_count': sum(b['transaction_count'] for b in sales_by_date),
        'items_sold': sum(b['items_sold'] for b in sales_by_date),
    }
    return {'sales_by_date': sales_by_date, 'totals': totals}


def revenue_by_payment_method(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Dict]:
    """Paid revenue per payment method, descending."""
    rows = (
        Transaction.objects.filter(_window('', start_date, end_date))
        .values('payment_method_id', 'payment_method__name', 'payment_method__method_type')
        .annotate(total_revenue=Sum('total_amount'), transaction_count=Count('id'))
        .order_by('-total_revenue')
    )
    return [
        {
            'payment_method_id': row['payment_method_id'],
            'name': row['payment_method__name'] or 'Unknown',
            'type': row['payment_method__method_type'] or 'unknown',
            'total_revenue': row['total_revenue'],
            'transaction_count': row['transaction_count'],
        }
        for row in rows
    ]


def transaction_stats(user_id=None) -> Dict:
    """Counts per status plus paid revenue, optionally for one customer."""
    queryset = Transaction.objects.all()
    if user_id:
        queryset = queryset.filter(user_id=user_id)

    paid = Q(status=Transaction.Status.PAID)
    stats = queryset.aggregate(
        total_transactions=Count('id'),
        pending_transactions=Count('id', filter=Q(status=Transaction.Status.PENDING)),
        unpaid_transactions=Count('id', filter=Q(status=Transaction.Status.UNPAID)),
        paid_transactions=Count('id', filter=paid),
        cancelled_transactions=Count('id', filter=Q(status=Transaction.Status.CANCELLED)),
        total_revenue=Sum('total_amount', filter=paid),
        avg_transaction_value=Avg('total_amount', filter=paid),
    )

    stats['total_revenue'] = stats['total_revenue'] or Decimal('0.00')
    stats['avg_transaction_value'] = round(
        Decimal(stats['avg_transaction_value'] or 0), 2
    )
    return stats
