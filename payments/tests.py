"""
Tests for bulk payment.

Test Cases:
1. Paying several transactions under one receipt
2. All-or-nothing when any transaction cannot be paid
3. Ownership check
4. Payment endpoints
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from core.exceptions import DomainValidationError, InvalidStateError, ResourceNotFound
from orders.models import Transaction
from payments.models import Payment, PaymentMethod
from payments.services import bulk_pay

User = get_user_model()


def make_transaction(user, invoice_number, total, status=Transaction.Status.UNPAID):
    return Transaction.objects.create(
        user=user,
        invoice_number=invoice_number,
        total_amount=Decimal(total),
        status=status
    )


class BulkPayTestCase(TestCase):
    """Test cases for bulk_pay."""

    def setUp(self):
        self.user = User.objects.create_user(username='warung')
        self.stranger = User.objects.create_user(username='stranger')
        self.method = PaymentMethod.objects.create(
            name='Bank Transfer BCA',
            method_type=PaymentMethod.Type.BANK_TRANSFER
        )
        self.tx1 = make_transaction(self.user, 'INV-20240101-000001', '100.00')
        self.tx2 = make_transaction(
            self.user, 'INV-20240101-000002', '150.00', status=Transaction.Status.PENDING
        )

    def test_bulk_pay_two_transactions(self):
        """
        Given: Two open transactions of 100 and 150
        When: Paying both
        Then: One receipt of 250, both PAID and linked to it
        """
        payment = bulk_pay(self.user.id, [self.tx1.id, self.tx2.id], self.method.id)

        self.assertEqual(payment.total_paid, Decimal('250.00'))
        self.assertEqual(payment.user, self.user)
        self.assertEqual(payment.payment_method, self.method)
        self.assertRegex(payment.receipt_number, r'^PAY-\d{8}-\d{6}$')
        self.assertEqual(sorted(payment.transaction_ids), sorted([self.tx1.id, self.tx2.id]))

        for tx in (self.tx1, self.tx2):
            tx.refresh_from_db()
            self.assertEqual(tx.status, Transaction.Status.PAID)
            self.assertEqual(tx.payment, payment)
            self.assertEqual(tx.payment_method, self.method)

    def test_duplicate_ids_counted_once(self):
        payment = bulk_pay(self.user.id, [self.tx1.id, self.tx1.id], self.method.id)
        self.assertEqual(payment.total_paid, Decimal('100.00'))

    def test_already_paid_aborts_whole_batch(self):
        """
        Given: Two open transactions and one PAID
        When: Paying all three
        Then: InvalidStateError, no receipt, the open ones stay open
        """
        paid = make_transaction(
            self.user, 'INV-20240101-000003', '75.00', status=Transaction.Status.PAID
        )

        with self.assertRaises(InvalidStateError) as context:
            bulk_pay(self.user.id, [self.tx1.id, self.tx2.id, paid.id], self.method.id)

        self.assertIn(paid.invoice_number, str(context.exception.detail))
        self.assertFalse(Payment.objects.exists())
        self.tx1.refresh_from_db()
        self.assertEqual(self.tx1.status, Transaction.Status.UNPAID)
        self.assertIsNone(self.tx1.payment)
        self.tx2.refresh_from_db()
        self.assertEqual(self.tx2.status, Transaction.Status.PENDING)

    def test_cancelled_cannot_be_paid(self):
        cancelled = make_transaction(
            self.user, 'INV-20240101-000004', '60.00', status=Transaction.Status.CANCELLED
        )

        with self.assertRaises(InvalidStateError):
            bulk_pay(self.user.id, [cancelled.id], self.method.id)

    def test_foreign_transaction_rejected(self):
        foreign = make_transaction(self.stranger, 'INV-20240101-000005', '80.00')

        with self.assertRaises(InvalidStateError):
            bulk_pay(self.user.id, [self.tx1.id, foreign.id], self.method.id)

        self.tx1.refresh_from_db()
        self.assertEqual(self.tx1.status, Transaction.Status.UNPAID)
        self.assertFalse(Payment.objects.exists())

    def test_missing_transaction(self):
        with self.assertRaises(ResourceNotFound):
            bulk_pay(self.user.id, [self.tx1.id, 99999], self.method.id)
        self.assertFalse(Payment.objects.exists())

    def test_empty_batch(self):
        with self.assertRaises(DomainValidationError):
            bulk_pay(self.user.id, [], self.method.id)

    def test_unknown_user_or_method(self):
        with self.assertRaises(ResourceNotFound):
            bulk_pay(99999, [self.tx1.id], self.method.id)
        with self.assertRaises(ResourceNotFound):
            bulk_pay(self.user.id, [self.tx1.id], 99999)


class PaymentAPITestCase(TestCase):
    """Test cases for the payment endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username='depot', is_staff=True)
        self.user = User.objects.create_user(username='warung')
        self.stranger = User.objects.create_user(username='stranger')
        self.method = PaymentMethod.objects.create(
            name='QRIS',
            method_type=PaymentMethod.Type.QRIS
        )
        PaymentMethod.objects.create(
            name='Old Wallet',
            method_type=PaymentMethod.Type.E_WALLET,
            is_active=False
        )
        self.tx1 = make_transaction(self.user, 'INV-20240101-000001', '100.00')
        self.tx2 = make_transaction(self.user, 'INV-20240101-000002', '150.00')

    def test_payment_methods_are_public(self):
        response = self.client.get('/api/payment-methods/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row['name'] for row in response.data['data']], ['QRIS'])

    def test_bulk_pay_endpoint(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            '/api/admin/transactions/bulk-pay/',
            {
                'user_id': self.user.id,
                'transaction_ids': [self.tx1.id, self.tx2.id],
                'payment_method_id': self.method.id,
            },
            format='json'
        )

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['total_paid'], '250.00')
        self.assertEqual(len(response.data['data']['transactions']), 2)

    def test_bulk_pay_endpoint_rejects_paid(self):
        Transaction.objects.filter(id=self.tx2.id).update(status=Transaction.Status.PAID)

        self.client.force_authenticate(self.admin)
        response = self.client.post(
            '/api/admin/transactions/bulk-pay/',
            {
                'user_id': self.user.id,
                'transaction_ids': [self.tx1.id, self.tx2.id],
                'payment_method_id': self.method.id,
            },
            format='json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data['success'])
        self.tx1.refresh_from_db()
        self.assertEqual(self.tx1.status, Transaction.Status.UNPAID)

    def test_bulk_pay_requires_admin(self):
        self.client.force_authenticate(self.user)
        response = self.client.post(
            '/api/admin/transactions/bulk-pay/',
            {
                'user_id': self.user.id,
                'transaction_ids': [self.tx1.id],
                'payment_method_id': self.method.id,
            },
            format='json'
        )
        self.assertEqual(response.status_code, 403)

    def test_bulk_pay_requires_ids(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            '/api/admin/transactions/bulk-pay/',
            {'user_id': self.user.id, 'transaction_ids': [], 'payment_method_id': self.method.id},
            format='json'
        )
        self.assertEqual(response.status_code, 400)

    def test_users_see_only_their_payments(self):
        payment = bulk_pay(self.user.id, [self.tx1.id], self.method.id)
        other_tx = make_transaction(self.stranger, 'INV-20240101-000009', '40.00')
        other_payment = bulk_pay(self.stranger.id, [other_tx.id], self.method.id)

        self.client.force_authenticate(self.user)
        response = self.client.get('/api/payments/')
        self.assertEqual([row['id'] for row in response.data['results']], [payment.id])

        response = self.client.get(f'/api/payments/{other_payment.id}/')
        self.assertEqual(response.status_code, 404)

        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/admin/payments/')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/admin/payments/', {'user_id': self.stranger.id})
        self.assertEqual([row['id'] for row in response.data['results']], [other_payment.id])
