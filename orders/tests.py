"""
Tests for cart and settlement logic.

Test Cases:
1. Checkout settles the cart with sufficient stock
2. Checkout rejected with insufficient stock, nothing written
3. Multi line atomicity: a short line rolls back the earlier ones
4. Cancel restores stock, only from PENDING
5. Admin transaction entry and cancellation
6. Concurrent checkout race condition prevention
7. Confirmation task queued after commit
"""
import threading
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import connection
from django.test import TestCase, TransactionTestCase
from rest_framework.test import APIClient

from core.exceptions import (
    DomainValidationError,
    EmptyCartError,
    InsufficientStockError,
    InvalidStateError,
    ResourceNotFound,
)
from inventory.models import Direction, Item, StockHistory, StockMovement
from inventory.services import current_stock, record_movement
from orders.models import Cart, CartItem, Transaction, TransactionItem
from orders.services import (
    add_to_cart,
    admin_cancel_transaction,
    cancel_transaction,
    checkout,
    clear_cart,
    create_transaction,
    remove_from_cart,
    update_cart_item,
)
from orders.tasks import generate_daily_sales_report, send_transaction_confirmation
from payments.models import PaymentMethod

User = get_user_model()

ADDRESS = 'Jl. Merdeka 1, Bandung'


def make_item(name, price, stock=0, size='3 kg', **kwargs):
    item = Item.objects.create(name=name, size=size, price=Decimal(price), **kwargs)
    if stock:
        record_movement(item.id, stock, Direction.IN, note='Opening stock')
    return item


class CartTestCase(TestCase):
    """Test cases for cart maintenance."""

    def setUp(self):
        self.user = User.objects.create_user(username='buyer')
        self.item = make_item('LPG Cylinder', '22000.00')
        self.other = make_item('Regulator', '85000.00', size='standard')

    def test_add_merges_lines(self):
        add_to_cart(self.user, self.item.id, 2)
        cart = add_to_cart(self.user, self.item.id, 3)

        self.assertEqual(cart.items.count(), 1)
        self.assertEqual(cart.items.get().qty, 5)
        self.assertEqual(cart.total, Decimal('110000.00'))

    def test_add_does_not_check_stock(self):
        cart = add_to_cart(self.user, self.item.id, 50)
        self.assertEqual(cart.items.get().qty, 50)

    def test_add_rejects_invalid_quantity(self):
        for qty in (0, -2):
            with self.assertRaises(DomainValidationError):
                add_to_cart(self.user, self.item.id, qty)

    def test_add_rejects_inactive_item(self):
        self.item.status = Item.Status.INACTIVE
        self.item.save()

        with self.assertRaises(ResourceNotFound):
            add_to_cart(self.user, self.item.id, 1)

    def test_update_to_zero_removes_line(self):
        add_to_cart(self.user, self.item.id, 2)
        add_to_cart(self.user, self.other.id, 1)

        cart = update_cart_item(self.user, self.item.id, 0)

        self.assertEqual(list(cart.items.values_list('item_id', flat=True)), [self.other.id])

    def test_update_rejects_negative(self):
        add_to_cart(self.user, self.item.id, 2)
        with self.assertRaises(DomainValidationError):
            update_cart_item(self.user, self.item.id, -1)

    def test_update_missing_line(self):
        add_to_cart(self.user, self.item.id, 2)
        with self.assertRaises(ResourceNotFound):
            update_cart_item(self.user, self.other.id, 3)

    def test_remove_and_clear(self):
        add_to_cart(self.user, self.item.id, 2)
        add_to_cart(self.user, self.other.id, 1)

        cart = remove_from_cart(self.user, self.item.id)
        self.assertEqual(cart.items.count(), 1)

        cart = clear_cart(self.user)
        self.assertEqual(cart.items.count(), 0)
        self.assertTrue(Cart.objects.filter(user=self.user).exists())

    def test_clear_without_cart(self):
        with self.assertRaises(ResourceNotFound):
            clear_cart(self.user)


class CheckoutTestCase(TestCase):
    """Test cases for checkout settlement."""

    def setUp(self):
        self.user = User.objects.create_user(username='buyer')
        self.method = PaymentMethod.objects.create(
            name='Bank Transfer BCA',
            method_type=PaymentMethod.Type.BANK_TRANSFER
        )
        self.small = make_item('LPG Cylinder', '22000.00', stock=10)
        self.medium = make_item('LPG Cylinder', '95000.00', stock=1, size='5.5 kg')
        self.large = make_item('LPG Cylinder', '210000.00', stock=10, size='12 kg')

    def test_checkout_with_sufficient_stock(self):
        """
        Given: Fold of 10 for the 3 kg item
        When: Checking out 4 of them
        Then: PENDING transaction totalling 4 x price, fold 6, cart empty
        """
        add_to_cart(self.user, self.small.id, 4)

        tx = checkout(self.user, self.method.id, ADDRESS)

        self.assertEqual(tx.status, Transaction.Status.PENDING)
        self.assertEqual(tx.total_amount, Decimal('88000.00'))
        self.assertEqual(tx.payment_method, self.method)
        self.assertRegex(tx.invoice_number, r'^INV-\d{8}-\d{6}$')
        self.assertEqual(current_stock(self.small.id), 6)
        self.assertEqual(Cart.objects.get(user=self.user).items.count(), 0)

        line = tx.items.get()
        self.assertEqual(line.quantity, 4)
        self.assertEqual(line.unit_price, Decimal('22000.00'))
        self.assertEqual(line.subtotal, Decimal('88000.00'))

        history = StockHistory.objects.get(item=self.small, reason=StockHistory.Reason.SOLD)
        self.assertEqual(history.previous_stock, 10)
        self.assertEqual(history.new_stock, 6)
        self.assertEqual(history.reference_type, StockHistory.ReferenceType.ORDER)
        self.assertEqual(history.reference_id, tx.invoice_number)
        self.assertEqual(history.performed_by_type, 'User')

    def test_unit_price_is_captured(self):
        add_to_cart(self.user, self.small.id, 2)
        tx = checkout(self.user, self.method.id, ADDRESS)

        self.small.price = Decimal('25000.00')
        self.small.save()

        line = TransactionItem.objects.get(transaction=tx)
        self.assertEqual(line.unit_price, Decimal('22000.00'))
        tx.refresh_from_db()
        self.assertEqual(tx.total_amount, Decimal('44000.00'))

    def test_checkout_with_exact_stock(self):
        add_to_cart(self.user, self.medium.id, 1)

        checkout(self.user, self.method.id, ADDRESS)

        self.assertEqual(current_stock(self.medium.id), 0)

    def test_checkout_rejected_with_insufficient_stock(self):
        """
        Given: Fold of 1 for the 5.5 kg item
        When: Checking out 5 of them
        Then: InsufficientStockError, no movement, no transaction, cart intact
        """
        add_to_cart(self.user, self.medium.id, 5)
        movements_before = StockMovement.objects.count()

        with self.assertRaises(InsufficientStockError) as context:
            checkout(self.user, self.method.id, ADDRESS)

        self.assertEqual(context.exception.available, 1)
        self.assertEqual(context.exception.requested, 5)
        self.assertIn('Insufficient stock', str(context.exception.detail))
        self.assertEqual(StockMovement.objects.count(), movements_before)
        self.assertFalse(Transaction.objects.exists())
        self.assertEqual(CartItem.objects.get(cart__user=self.user).qty, 5)

    def test_short_line_rolls_back_earlier_lines(self):
        """
        Given: Three cart lines, the second exceeding its stock
        When: Checking out
        Then: The error names the second item and no line is deducted
        """
        add_to_cart(self.user, self.small.id, 2)
        add_to_cart(self.user, self.medium.id, 5)
        add_to_cart(self.user, self.large.id, 1)

        with self.assertRaises(InsufficientStockError) as context:
            checkout(self.user, self.method.id, ADDRESS)

        self.assertEqual(context.exception.item_name, self.medium.name)
        self.assertEqual(current_stock(self.small.id), 10)
        self.assertEqual(current_stock(self.medium.id), 1)
        self.assertEqual(current_stock(self.large.id), 10)
        self.assertFalse(StockMovement.objects.filter(direction=Direction.OUT).exists())
        self.assertFalse(StockHistory.objects.exists())
        self.assertEqual(CartItem.objects.filter(cart__user=self.user).count(), 3)

    def test_checkout_empty_cart(self):
        with self.assertRaises(EmptyCartError):
            checkout(self.user, self.method.id, ADDRESS)

        Cart.objects.create(user=self.user)
        with self.assertRaises(EmptyCartError):
            checkout(self.user, self.method.id, ADDRESS)

    def test_checkout_requires_address_and_method(self):
        add_to_cart(self.user, self.small.id, 1)

        with self.assertRaises(DomainValidationError):
            checkout(self.user, self.method.id, '')
        with self.assertRaises(DomainValidationError):
            checkout(self.user, None, ADDRESS)

    def test_checkout_inactive_payment_method(self):
        self.method.is_active = False
        self.method.save()
        add_to_cart(self.user, self.small.id, 1)

        with self.assertRaises(ResourceNotFound):
            checkout(self.user, self.method.id, ADDRESS)

    def test_checkout_item_deactivated_after_adding(self):
        add_to_cart(self.user, self.small.id, 1)
        self.small.status = Item.Status.INACTIVE
        self.small.save()

        with self.assertRaises(ResourceNotFound):
            checkout(self.user, self.method.id, ADDRESS)
        self.assertFalse(Transaction.objects.exists())

    def test_checkout_zero_price_rejected(self):
        free = make_item('Promo Cylinder', '0.00', stock=5)
        add_to_cart(self.user, free.id, 1)

        with self.assertRaises(DomainValidationError):
            checkout(self.user, self.method.id, ADDRESS)
        self.assertEqual(current_stock(free.id), 5)

    def test_confirmation_queued_after_commit(self):
        add_to_cart(self.user, self.small.id, 1)

        with patch('orders.services._queue_confirmation') as queue:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                tx = checkout(self.user, self.method.id, ADDRESS)

        self.assertEqual(len(callbacks), 1)
        queue.assert_called_once_with(tx.id)

    def test_no_confirmation_for_rejected_checkout(self):
        add_to_cart(self.user, self.medium.id, 5)

        with self.captureOnCommitCallbacks() as callbacks:
            with self.assertRaises(InsufficientStockError):
                checkout(self.user, self.method.id, ADDRESS)

        self.assertEqual(len(callbacks), 0)


class CancelTransactionTestCase(TestCase):
    """Test cases for cancelling a user's own PENDING transaction."""

    def setUp(self):
        self.user = User.objects.create_user(username='buyer')
        self.stranger = User.objects.create_user(username='stranger')
        self.method = PaymentMethod.objects.create(
            name='QRIS',
            method_type=PaymentMethod.Type.QRIS
        )
        self.item = make_item('LPG Cylinder', '22000.00', stock=10)
        add_to_cart(self.user, self.item.id, 4)
        self.tx = checkout(self.user, self.method.id, ADDRESS)

    def test_cancel_restores_stock(self):
        tx = cancel_transaction(self.user, self.tx.id)

        self.assertEqual(tx.status, Transaction.Status.CANCELLED)
        self.assertEqual(current_stock(self.item.id), 10)

        history = StockHistory.objects.get(item=self.item, reason=StockHistory.Reason.RETURN)
        self.assertEqual(history.direction, Direction.IN)
        self.assertEqual(history.previous_stock, 6)
        self.assertEqual(history.new_stock, 10)
        self.assertEqual(history.reference_id, self.tx.invoice_number)
        # The original OUT stays in the ledger
        self.assertTrue(StockMovement.objects.filter(item=self.item, direction=Direction.OUT).exists())

    def test_cancel_twice_rejected(self):
        cancel_transaction(self.user, self.tx.id)

        with self.assertRaises(InvalidStateError):
            cancel_transaction(self.user, self.tx.id)
        self.assertEqual(current_stock(self.item.id), 10)

    def test_cancel_paid_rejected(self):
        Transaction.objects.filter(id=self.tx.id).update(status=Transaction.Status.PAID)

        with self.assertRaises(InvalidStateError):
            cancel_transaction(self.user, self.tx.id)
        self.assertEqual(current_stock(self.item.id), 6)

    def test_cancel_other_users_transaction(self):
        with self.assertRaises(ResourceNotFound):
            cancel_transaction(self.stranger, self.tx.id)

        self.tx.refresh_from_db()
        self.assertEqual(self.tx.status, Transaction.Status.PENDING)


class AdminTransactionTestCase(TestCase):
    """Test cases for admin transaction entry."""

    def setUp(self):
        self.admin = User.objects.create_user(username='depot', is_staff=True)
        self.customer = User.objects.create_user(username='warung')
        self.method = PaymentMethod.objects.create(
            name='Cash on Delivery',
            method_type=PaymentMethod.Type.COD
        )
        self.small = make_item('LPG Cylinder', '22000.00', stock=20)
        self.large = make_item('LPG Cylinder', '210000.00', stock=3, size='12 kg')

    def test_create_unpaid_transaction(self):
        items = [
            {'item_id': self.small.id, 'qty': 5},
            {'item_id': self.large.id, 'qty': 2},
        ]

        tx = create_transaction(self.admin, self.customer.id, items, self.method.id)

        # (5 * 22000) + (2 * 210000) = 530000
        self.assertEqual(tx.total_amount, Decimal('530000.00'))
        self.assertEqual(tx.status, Transaction.Status.UNPAID)
        self.assertEqual(tx.user, self.customer)
        self.assertEqual(tx.items.count(), 2)
        self.assertEqual(current_stock(self.small.id), 15)
        self.assertEqual(current_stock(self.large.id), 1)

        history = StockHistory.objects.filter(reference_id=tx.invoice_number)
        self.assertEqual(history.count(), 2)
        for row in history:
            self.assertEqual(row.reference_type, StockHistory.ReferenceType.TRANSACTION)
            self.assertEqual(row.performed_by, self.admin)
            self.assertEqual(row.performed_by_type, 'Admin')

    def test_create_rejected_with_insufficient_stock(self):
        items = [
            {'item_id': self.small.id, 'qty': 5},
            {'item_id': self.large.id, 'qty': 4},
        ]

        with self.assertRaises(InsufficientStockError):
            create_transaction(self.admin, self.customer.id, items)

        self.assertEqual(current_stock(self.small.id), 20)
        self.assertFalse(Transaction.objects.exists())

    def test_create_validation(self):
        with self.assertRaises(DomainValidationError):
            create_transaction(self.admin, self.customer.id, [])
        with self.assertRaises(DomainValidationError):
            create_transaction(self.admin, self.customer.id, [{'item_id': self.small.id, 'qty': 0}])
        with self.assertRaises(DomainValidationError):
            create_transaction(
                self.admin,
                self.customer.id,
                [{'item_id': self.small.id, 'qty': 1}, {'item_id': self.small.id, 'qty': 2}]
            )
        with self.assertRaises(DomainValidationError):
            create_transaction(
                self.admin, self.customer.id, [{'item_id': self.small.id, 'qty': 1}], status='PAID'
            )

    def test_create_for_unknown_user(self):
        with self.assertRaises(ResourceNotFound):
            create_transaction(self.admin, 99999, [{'item_id': self.small.id, 'qty': 1}])

    def test_create_with_unknown_item(self):
        with self.assertRaises(ResourceNotFound):
            create_transaction(self.admin, self.customer.id, [{'item_id': 99999, 'qty': 1}])

    def test_admin_cancel_unpaid_restores_stock(self):
        """
        Given: Stock of 20 and an UNPAID admin transaction taking 5
        When: The admin cancels it
        Then: Status is CANCELLED and the fold is back to 20 through IN movements
        """
        tx = create_transaction(
            self.admin, self.customer.id, [{'item_id': self.small.id, 'qty': 5}], self.method.id
        )
        self.assertEqual(current_stock(self.small.id), 15)

        tx = admin_cancel_transaction(self.admin, tx.id)

        self.assertEqual(tx.status, Transaction.Status.CANCELLED)
        self.assertEqual(current_stock(self.small.id), 20)

        history = StockHistory.objects.get(item=self.small, reason=StockHistory.Reason.RETURN)
        self.assertEqual(history.direction, Direction.IN)
        self.assertEqual(history.previous_stock, 15)
        self.assertEqual(history.new_stock, 20)
        self.assertEqual(history.reference_type, StockHistory.ReferenceType.TRANSACTION)
        self.assertEqual(history.reference_id, tx.invoice_number)
        self.assertEqual(history.performed_by, self.admin)
        self.assertEqual(history.performed_by_type, 'Admin')
        self.assertTrue(
            StockMovement.objects.filter(item=self.small, direction=Direction.OUT).exists()
        )

    def test_admin_cancel_pending(self):
        tx = create_transaction(
            self.admin, self.customer.id, [{'item_id': self.large.id, 'qty': 2}],
            status=Transaction.Status.PENDING
        )

        admin_cancel_transaction(self.admin, tx.id)

        self.assertEqual(current_stock(self.large.id), 3)

    def test_admin_cancel_paid_rejected(self):
        tx = create_transaction(
            self.admin, self.customer.id, [{'item_id': self.small.id, 'qty': 5}], self.method.id
        )
        Transaction.objects.filter(id=tx.id).update(status=Transaction.Status.PAID)

        with self.assertRaises(InvalidStateError):
            admin_cancel_transaction(self.admin, tx.id)

        tx.refresh_from_db()
        self.assertEqual(tx.status, Transaction.Status.PAID)
        self.assertEqual(current_stock(self.small.id), 15)
        self.assertFalse(StockHistory.objects.filter(reason=StockHistory.Reason.RETURN).exists())

    def test_admin_cancel_twice_rejected(self):
        tx = create_transaction(
            self.admin, self.customer.id, [{'item_id': self.small.id, 'qty': 5}], self.method.id
        )
        admin_cancel_transaction(self.admin, tx.id)

        with self.assertRaises(InvalidStateError):
            admin_cancel_transaction(self.admin, tx.id)
        self.assertEqual(current_stock(self.small.id), 20)

    def test_admin_cancel_unknown_transaction(self):
        with self.assertRaises(ResourceNotFound):
            admin_cancel_transaction(self.admin, 99999)


class OrderAPITestCase(TestCase):
    """Test cases for the cart, checkout and admin transaction endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username='buyer')
        self.admin = User.objects.create_user(username='depot', is_staff=True)
        self.method = PaymentMethod.objects.create(
            name='GoPay',
            method_type=PaymentMethod.Type.E_WALLET
        )
        self.item = make_item('LPG Cylinder', '95000.00', stock=3, size='5.5 kg')

    def test_cart_flow(self):
        self.client.force_authenticate(self.user)

        response = self.client.get('/api/cart/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['items'], [])

        response = self.client.post('/api/cart/add/', {'item_id': self.item.id, 'qty': 2}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['total'], '190000.00')

        response = self.client.put('/api/cart/update/', {'item_id': self.item.id, 'qty': 1}, format='json')
        self.assertEqual(response.data['data']['items'][0]['qty'], 1)

        response = self.client.delete(f'/api/cart/remove/{self.item.id}/')
        self.assertEqual(response.data['data']['items'], [])

        response = self.client.delete(f'/api/cart/remove/{self.item.id}/')
        self.assertEqual(response.status_code, 404)

    def test_cart_update_negative_rejected(self):
        self.client.force_authenticate(self.user)
        self.client.post('/api/cart/add/', {'item_id': self.item.id, 'qty': 2}, format='json')

        response = self.client.put('/api/cart/update/', {'item_id': self.item.id, 'qty': -1}, format='json')

        self.assertEqual(response.status_code, 400)

    def test_checkout_endpoint(self):
        self.client.force_authenticate(self.user)
        self.client.post('/api/cart/add/', {'item_id': self.item.id, 'qty': 2}, format='json')

        response = self.client.post(
            '/api/checkout/',
            {'payment_method_id': self.method.id, 'shipping_address': ADDRESS},
            format='json'
        )

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['status'], 'PENDING')
        self.assertEqual(response.data['data']['total_amount'], '190000.00')
        self.assertEqual(len(response.data['data']['items']), 1)

    def test_checkout_endpoint_insufficient_stock(self):
        self.client.force_authenticate(self.user)
        self.client.post('/api/cart/add/', {'item_id': self.item.id, 'qty': 5}, format='json')

        response = self.client.post(
            '/api/checkout/',
            {'payment_method_id': self.method.id, 'shipping_address': ADDRESS},
            format='json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['available'], 3)
        self.assertEqual(response.data['requested'], 5)

    def test_checkout_endpoint_empty_cart(self):
        self.client.force_authenticate(self.user)
        response = self.client.post(
            '/api/checkout/',
            {'payment_method_id': self.method.id, 'shipping_address': ADDRESS},
            format='json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Cart is empty')

    def test_user_orders_and_cancel(self):
        add_to_cart(self.user, self.item.id, 1)
        tx = checkout(self.user, self.method.id, ADDRESS)
        other = User.objects.create_user(username='stranger')

        self.client.force_authenticate(self.user)
        response = self.client.get('/api/checkout/orders/')
        self.assertEqual(response.data['count'], 1)

        response = self.client.put(f'/api/checkout/orders/{tx.id}/cancel/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['status'], 'CANCELLED')

        response = self.client.put(f'/api/checkout/orders/{tx.id}/cancel/')
        self.assertEqual(response.status_code, 400)

        self.client.force_authenticate(other)
        response = self.client.get(f'/api/checkout/orders/{tx.id}/')
        self.assertEqual(response.status_code, 404)

    def test_admin_transaction_endpoints(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            '/api/admin/transactions/',
            {
                'user_id': self.user.id,
                'items': [{'item_id': self.item.id, 'qty': 2}],
                'payment_method_id': self.method.id,
            },
            format='json'
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['data']['status'], 'UNPAID')
        tx_id = response.data['data']['id']

        response = self.client.get('/api/admin/transactions/', {'status': 'UNPAID'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get(f'/api/admin/transactions/{tx_id}/')
        self.assertEqual(response.status_code, 200)

    def test_admin_transactions_forbidden_for_users(self):
        self.client.force_authenticate(self.user)
        response = self.client.get('/api/admin/transactions/')
        self.assertEqual(response.status_code, 403)

    def test_admin_cancel_endpoint(self):
        tx = create_transaction(self.admin, self.user.id, [{'item_id': self.item.id, 'qty': 2}])
        self.assertEqual(current_stock(self.item.id), 1)

        self.client.force_authenticate(self.user)
        response = self.client.put(f'/api/admin/transactions/{tx.id}/cancel/')
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.admin)
        response = self.client.put(f'/api/admin/transactions/{tx.id}/cancel/')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['status'], 'CANCELLED')
        self.assertEqual(current_stock(self.item.id), 3)

        response = self.client.put(f'/api/admin/transactions/{tx.id}/cancel/')
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data['success'])


class ConfirmationTaskTestCase(TestCase):
    """Test cases for background tasks."""

    def setUp(self):
        self.user = User.objects.create_user(username='buyer')
        self.method = PaymentMethod.objects.create(
            name='QRIS',
            method_type=PaymentMethod.Type.QRIS
        )
        self.item = make_item('LPG Cylinder', '22000.00', stock=5)
        add_to_cart(self.user, self.item.id, 1)
        self.tx = checkout(self.user, self.method.id, ADDRESS)

    def test_confirmation_for_pending(self):
        result = send_transaction_confirmation(self.tx.id)

        self.assertEqual(result['status'], 'success')
        self.assertEqual(result['transaction_id'], self.tx.id)

    def test_confirmation_skipped_for_cancelled(self):
        cancel_transaction(self.user, self.tx.id)

        result = send_transaction_confirmation(self.tx.id)

        self.assertEqual(result['status'], 'skipped')

    def test_confirmation_for_missing_transaction(self):
        result = send_transaction_confirmation(99999)
        self.assertEqual(result['status'], 'error')

    def test_daily_sales_report_without_sales(self):
        result = generate_daily_sales_report()

        self.assertEqual(result['transaction_count'], 0)
        self.assertEqual(result['total_sales'], '0.00')


class ConcurrentCheckoutTestCase(TransactionTestCase):
    """
    Test concurrent checkout handling to verify row locking works.
    Uses TransactionTestCase for proper multi-threading support.
    """

    def setUp(self):
        self.method = PaymentMethod.objects.create(
            name='Bank Transfer BCA',
            method_type=PaymentMethod.Type.BANK_TRANSFER
        )
        self.item = make_item('LPG Cylinder', '210000.00', stock=10, size='12 kg')
        self.buyers = [
            User.objects.create_user(username='buyer1'),
            User.objects.create_user(username='buyer2'),
        ]
        for buyer in self.buyers:
            add_to_cart(buyer, self.item.id, 8)

    def test_concurrent_checkouts_no_overselling(self):
        """
        Given: 10 units in stock
        When: Two concurrent checkouts of 8 units each
        Then: At most one succeeds and the fold never goes negative
        """
        results = {}

        def place_order(buyer):
            try:
                checkout(buyer, self.method.id, ADDRESS)
                results[buyer.username] = 'settled'
            except InsufficientStockError:
                results[buyer.username] = 'rejected'
            except Exception:
                # SQLite may refuse the second writer outright
                results[buyer.username] = 'error'
            finally:
                connection.close()

        threads = [threading.Thread(target=place_order, args=(buyer,)) for buyer in self.buyers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        settled = sum(1 for r in results.values() if r == 'settled')

        self.assertLessEqual(settled, 1)
        self.assertEqual(current_stock(self.item.id), 10 - 8 * settled)
        self.assertEqual(Transaction.objects.count(), settled)
