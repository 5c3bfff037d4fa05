"""
Tests for sales reporting.

Only PAID transactions count towards sales figures.
"""
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from inventory.models import Item
from orders.models import Transaction, TransactionItem
from payments.models import PaymentMethod
from reports.services import (
    best_sellers,
    bucket_label,
    revenue_by_payment_method,
    sales_trend,
    transaction_stats,
)

User = get_user_model()


class ReportTestCase(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='warung')
        self.admin = User.objects.create_user(username='depot', is_staff=True)
        self.transfer = PaymentMethod.objects.create(
            name='Bank Transfer BCA',
            method_type=PaymentMethod.Type.BANK_TRANSFER
        )
        self.qris = PaymentMethod.objects.create(
            name='QRIS',
            method_type=PaymentMethod.Type.QRIS
        )
        self.small = Item.objects.create(name='LPG Cylinder', size='3 kg', price=Decimal('20.00'))
        self.large = Item.objects.create(name='LPG Cylinder', size='12 kg', price=Decimal('50.00'))

        # Jan 10: 5 small + 1 large, paid by transfer
        self.make_transaction(
            1, datetime(2024, 1, 10, 9, tzinfo=dt_timezone.utc), Transaction.Status.PAID,
            self.transfer, [(self.small, 5), (self.large, 1)]
        )
        # Jan 11: 2 large, paid by QRIS
        self.make_transaction(
            2, datetime(2024, 1, 11, 9, tzinfo=dt_timezone.utc), Transaction.Status.PAID,
            self.qris, [(self.large, 2)]
        )
        # Feb 1: 4 small, paid by transfer
        self.make_transaction(
            3, datetime(2024, 2, 1, 9, tzinfo=dt_timezone.utc), Transaction.Status.PAID,
            self.transfer, [(self.small, 4)]
        )
        # Not paid: excluded from sales figures
        self.make_transaction(
            4, datetime(2024, 1, 10, 12, tzinfo=dt_timezone.utc), Transaction.Status.UNPAID,
            self.transfer, [(self.large, 10)]
        )
        self.make_transaction(
            5, datetime(2024, 1, 12, 12, tzinfo=dt_timezone.utc), Transaction.Status.CANCELLED,
            self.qris, [(self.small, 10)]
        )

    def make_transaction(self, seq, created_at, status, method, lines):
        tx = Transaction.objects.create(
            user=self.user,
            invoice_number=f'INV-20240101-{seq:06d}',
            status=status,
            payment_method=method,
        )
        total = Decimal('0.00')
        for item, qty in lines:
            subtotal = item.price * qty
            TransactionItem.objects.create(
                transaction=tx, item=item, quantity=qty,
                unit_price=item.price, subtotal=subtotal
            )
            total += subtotal
        Transaction.objects.filter(id=tx.id).update(total_amount=total, created_at=created_at)
        return tx

    def test_best_sellers(self):
        rows = best_sellers()

        self.assertEqual([row['item_id'] for row in rows], [self.small.id, self.large.id])
        self.assertEqual(rows[0]['total_quantity_sold'], 9)
        self.assertEqual(rows[0]['total_revenue'], Decimal('180.00'))
        self.assertEqual(rows[1]['total_quantity_sold'], 3)
        self.assertEqual(rows[1]['transaction_count'], 2)

    def test_best_sellers_window_and_limit(self):
        rows = best_sellers(limit=1, start_date=date(2024, 1, 11), end_date=date(2024, 1, 31))

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['item_id'], self.large.id)
        self.assertEqual(rows[0]['total_quantity_sold'], 2)

    def test_sales_by_day(self):
        report = sales_trend(group_by='day')

        self.assertEqual(
            [bucket['date'] for bucket in report['sales_by_date']],
            ['2024-01-10', '2024-01-11', '2024-02-01']
        )
        first = report['sales_by_date'][0]
        self.assertEqual(first['total_sales'], Decimal('150.00'))
        self.assertEqual(first['transaction_count'], 1)
        self.assertEqual(first['items_sold'], 6)

        self.assertEqual(report['totals']['total_sales'], Decimal('330.00'))
        self.assertEqual(report['totals']['transaction_count'], 3)
        self.assertEqual(report['totals']['items_sold'], 12)

    def test_sales_by_month(self):
        report = sales_trend(group_by='month')

        self.assertEqual(
            [(b['date'], b['total_sales']) for b in report['sales_by_date']],
            [('2024-01', Decimal('250.00')), ('2024-02', Decimal('80.00'))]
        )

    def test_bucket_label_week(self):
        self.assertEqual(bucket_label(date(2024, 1, 10), 'week'), '2024-W02')

    def test_revenue_by_payment_method(self):
        rows = revenue_by_payment_method()

        self.assertEqual(rows[0]['payment_method_id'], self.transfer.id)
        self.assertEqual(rows[0]['total_revenue'], Decimal('230.00'))
        self.assertEqual(rows[0]['transaction_count'], 2)
        self.assertEqual(rows[1]['name'], 'QRIS')
        self.assertEqual(rows[1]['total_revenue'], Decimal('100.00'))

    def test_transaction_stats(self):
        stats = transaction_stats()

        self.assertEqual(stats['total_transactions'], 5)
        self.assertEqual(stats['paid_transactions'], 3)
        self.assertEqual(stats['unpaid_transactions'], 1)
        self.assertEqual(stats['cancelled_transactions'], 1)
        self.assertEqual(stats['pending_transactions'], 0)
        self.assertEqual(stats['total_revenue'], Decimal('330.00'))
        self.assertEqual(stats['avg_transaction_value'], Decimal('110.00'))

    def test_report_endpoints(self):
        client = APIClient()
        client.force_authenticate(self.admin)

        response = client.get('/api/reports/sales/', {'group_by': 'month'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['totals']['total_sales'], '330.00')

        response = client.get('/api/reports/best-sellers/', {'limit': 1})
        self.assertEqual(response.data['count'], 1)

        response = client.get('/api/reports/stats/', {'user_id': self.user.id})
        self.assertEqual(response.data['data']['paid_transactions'], 3)

        response = client.get('/api/reports/revenue-by-payment/')
        self.assertEqual(len(response.data['data']), 2)

    def test_report_parameter_validation(self):
        client = APIClient()
        client.force_authenticate(self.admin)

        self.assertEqual(client.get('/api/reports/sales/', {'group_by': 'year'}).status_code, 400)
        self.assertEqual(client.get('/api/reports/best-sellers/', {'limit': 0}).status_code, 400)
        self.assertEqual(client.get('/api/reports/stats/', {'user_id': 'abc'}).status_code, 400)
        response = client.get(
            '/api/reports/sales/', {'start_date': '2024-02-01', 'end_date': '2024-01-01'}
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data['success'])

    def test_reports_require_admin(self):
        client = APIClient()
        client.force_authenticate(self.user)

        self.assertEqual(client.get('/api/reports/stats/').status_code, 403)

    def test_report_amounts_are_two_place_strings(self):
        """
        Given: Paid sales of 330 over three transactions
        When: Reading every report over the API
        Then: Money fields are rendered as fixed two place strings
        """
        client = APIClient()
        client.force_authenticate(self.admin)

        response = client.get('/api/reports/best-sellers/')
        top = response.data['data'][0]
        self.assertEqual(top['total_revenue'], '180.00')
        self.assertEqual(top['price'], '20.00')
        self.assertEqual(top['total_quantity_sold'], 9)

        response = client.get('/api/reports/sales/', {'group_by': 'day'})
        self.assertEqual(response.data['data']['sales_by_date'][0]['total_sales'], '150.00')
        self.assertEqual(response.data['data']['totals']['items_sold'], 12)

        response = client.get('/api/reports/revenue-by-payment/')
        self.assertEqual(response.data['data'][0]['total_revenue'], '230.00')

        response = client.get('/api/reports/stats/')
        self.assertEqual(response.data['data']['total_revenue'], '330.00')
        self.assertEqual(response.data['data']['avg_transaction_value'], '110.00')
