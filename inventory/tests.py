"""
Tests for the item catalog and the stock ledger.

Test Cases:
1. Stock is the fold of movements (sum IN - sum OUT)
2. Raw movement validation (and no negative stock check)
3. Audited adjustment rejects OUT beyond the fold with nothing written
4. Ledger rows are append-only
5. Movement list and history endpoints with filtered reason breakdown
6. Seeding command
"""
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from core.exceptions import DomainValidationError, InsufficientStockError, ResourceNotFound
from inventory.models import Direction, Item, StockHistory, StockMovement
from inventory.services import (
    adjust_stock_with_history,
    current_stock,
    reason_breakdown,
    record_movement,
    stock_summary,
)
from payments.models import PaymentMethod

User = get_user_model()


class StockLedgerTestCase(TestCase):
    """Test cases for folding and appending movements."""

    def setUp(self):
        self.item = Item.objects.create(
            name='LPG Cylinder',
            size='3 kg',
            price=Decimal('22000.00')
        )
        self.other = Item.objects.create(
            name='LPG Cylinder',
            size='12 kg',
            price=Decimal('210000.00')
        )

    def test_stock_without_movements_is_zero(self):
        self.assertEqual(current_stock(self.item.id), 0)

    def test_stock_is_fold_of_movements(self):
        """
        Given: IN 10, OUT 3, IN 5 for one item and IN 7 for another
        When: Folding the first item
        Then: Stock is 12, unaffected by the other item's rows
        """
        record_movement(self.item.id, 10, Direction.IN)
        record_movement(self.item.id, 3, Direction.OUT)
        record_movement(self.item.id, 5, Direction.IN)
        record_movement(self.other.id, 7, Direction.IN)

        self.assertEqual(current_stock(self.item.id), 12)
        self.assertEqual(current_stock(self.other.id), 7)

    def test_raw_out_movement_may_drive_stock_negative(self):
        record_movement(self.item.id, 2, Direction.IN)
        record_movement(self.item.id, 5, Direction.OUT)

        self.assertEqual(current_stock(self.item.id), -3)

    def test_direction_is_case_insensitive(self):
        movement = record_movement(self.item.id, 4, 'in')
        self.assertEqual(movement.direction, Direction.IN)

    def test_invalid_quantity_rejected(self):
        for quantity in (0, -1, 1.5, '3', True):
            with self.assertRaises(DomainValidationError):
                record_movement(self.item.id, quantity, Direction.IN)
        self.assertFalse(StockMovement.objects.exists())

    def test_invalid_direction_rejected(self):
        with self.assertRaises(DomainValidationError):
            record_movement(self.item.id, 1, 'SIDEWAYS')

    def test_unknown_item_rejected(self):
        with self.assertRaises(ResourceNotFound):
            record_movement(99999, 1, Direction.IN)

    def test_stock_summary(self):
        record_movement(self.item.id, 10, Direction.IN)
        record_movement(self.item.id, 4, Direction.OUT)

        summary = {row['item_id']: row['current_stock'] for row in stock_summary()}

        self.assertEqual(summary[self.item.id], 6)
        self.assertEqual(summary[self.other.id], 0)

    def test_movements_are_append_only(self):
        movement = record_movement(self.item.id, 10, Direction.IN)

        movement.quantity = 100
        with self.assertRaises(ValidationError):
            movement.save()
        with self.assertRaises(ValidationError):
            movement.delete()

        self.assertEqual(current_stock(self.item.id), 10)


class StockAdjustmentTestCase(TestCase):
    """Test cases for adjust_stock_with_history."""

    def setUp(self):
        self.admin = User.objects.create_user(
            username='depot', first_name='Depot', last_name='Admin', is_staff=True
        )
        self.item = Item.objects.create(
            name='LPG Cylinder',
            size='12 kg',
            price=Decimal('210000.00')
        )
        record_movement(self.item.id, 2, Direction.IN)

    def test_out_beyond_stock_rejected_without_writes(self):
        """
        Given: Fold is 2
        When: Adjusting OUT 3
        Then: InsufficientStockError, no movement or history row is created
        """
        movements_before = StockMovement.objects.count()

        with self.assertRaises(InsufficientStockError) as context:
            adjust_stock_with_history(
                self.item.id, 3, Direction.OUT, StockHistory.Reason.DAMAGED, actor=self.admin
            )

        self.assertEqual(context.exception.available, 2)
        self.assertEqual(context.exception.requested, 3)
        self.assertEqual(StockMovement.objects.count(), movements_before)
        self.assertFalse(StockHistory.objects.exists())
        self.assertEqual(current_stock(self.item.id), 2)

    def test_out_of_exact_stock_allowed(self):
        result = adjust_stock_with_history(
            self.item.id, 2, Direction.OUT, StockHistory.Reason.DAMAGED, actor=self.admin
        )

        self.assertEqual(result['previous_stock'], 2)
        self.assertEqual(result['new_stock'], 0)
        self.assertEqual(current_stock(self.item.id), 0)

    def test_restock_writes_history(self):
        result = adjust_stock_with_history(
            self.item.id, 10, Direction.IN, StockHistory.Reason.RESTOCK,
            actor=self.admin, note='Delivery from depot'
        )
        history = result['history']

        self.assertEqual(history.movement, result['stock'])
        self.assertEqual(history.previous_stock, 2)
        self.assertEqual(history.new_stock, 12)
        self.assertEqual(history.performed_by, self.admin)
        self.assertEqual(history.performed_by_type, 'Admin')
        self.assertEqual(history.performed_by_name, 'Depot Admin')
        self.assertEqual(history.reference_type, StockHistory.ReferenceType.MANUAL)
        self.assertEqual(history.note, 'Delivery from depot')

    def test_unknown_reason_rejected(self):
        with self.assertRaises(DomainValidationError):
            adjust_stock_with_history(self.item.id, 1, Direction.IN, 'lost-in-transit')
        self.assertFalse(StockHistory.objects.exists())

    def test_reason_breakdown(self):
        adjust_stock_with_history(self.item.id, 10, Direction.IN, StockHistory.Reason.RESTOCK)
        adjust_stock_with_history(self.item.id, 5, Direction.IN, StockHistory.Reason.RESTOCK)
        adjust_stock_with_history(self.item.id, 1, Direction.OUT, StockHistory.Reason.DAMAGED)

        breakdown = {row['reason']: row for row in reason_breakdown(self.item.id)}

        self.assertEqual(breakdown['restock']['total_quantity'], 15)
        self.assertEqual(breakdown['restock']['count'], 2)
        self.assertEqual(breakdown['damaged']['total_quantity'], 1)


class InventoryAPITestCase(TestCase):
    """Test cases for the item and stock endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username='admin', is_staff=True)
        self.buyer = User.objects.create_user(username='buyer')
        self.item = Item.objects.create(
            name='LPG Cylinder',
            size='5.5 kg',
            price=Decimal('95000.00')
        )
        self.hidden = Item.objects.create(
            name='Regulator',
            size='standard',
            price=Decimal('85000.00'),
            status=Item.Status.INACTIVE
        )

    def test_buyers_only_see_active_items(self):
        self.client.force_authenticate(self.buyer)
        response = self.client.get('/api/items/')

        self.assertEqual(response.status_code, 200)
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [self.item.id])

    def test_buyers_cannot_create_items(self):
        self.client.force_authenticate(self.buyer)
        response = self.client.post(
            '/api/items/', {'name': 'Hose', 'size': '1.8 m', 'price': '45000.00'}, format='json'
        )
        self.assertEqual(response.status_code, 403)

    def test_admin_creates_item(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            '/api/items/', {'name': 'Gas Hose', 'size': '1.8 m', 'price': '45000.00'}, format='json'
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(Item.objects.get(name='Gas Hose').status, Item.Status.ACTIVE)

    def test_negative_price_rejected(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            '/api/items/', {'name': 'Gas Hose', 'size': '1.8 m', 'price': '-1.00'}, format='json'
        )
        self.assertEqual(response.status_code, 400)

    def test_raw_stock_movement(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            '/api/stock/',
            {'item_id': self.item.id, 'quantity': 15, 'type': 'IN', 'note': 'delivery'},
            format='json'
        )

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data['success'])
        self.assertEqual(current_stock(self.item.id), 15)

    def test_stock_list_filtered_by_item(self):
        other = Item.objects.create(name='LPG Cylinder', size='12 kg', price=Decimal('210000.00'))
        record_movement(self.item.id, 5, Direction.IN)
        record_movement(self.item.id, 2, Direction.OUT)
        record_movement(other.id, 7, Direction.IN)

        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/stock/', {'item_id': self.item.id})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/stock/', {'item_id': self.item.id, 'type': 'OUT'})
        self.assertEqual(response.data['count'], 1)

    def test_stock_list_rejects_malformed_item_id(self):
        """
        Given: A non numeric item_id filter
        When: Listing stock movements
        Then: 400 in the error envelope, not a server error
        """
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/stock/', {'item_id': 'abc'})

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data['success'])
        self.assertIn('item_id', response.data['errors'])

    def test_item_stock_endpoint(self):
        record_movement(self.item.id, 8, Direction.IN)
        record_movement(self.item.id, 3, Direction.OUT)

        self.client.force_authenticate(self.admin)
        response = self.client.get(f'/api/stock/item/{self.item.id}/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['current_stock'], 5)
        self.assertEqual(len(response.data['history']), 2)

    def test_adjust_rejects_oversell(self):
        record_movement(self.item.id, 2, Direction.IN)

        self.client.force_authenticate(self.admin)
        response = self.client.post(
            '/api/stock/add-with-history/',
            {'item_id': self.item.id, 'quantity': 3, 'type': 'OUT', 'reason': 'damaged'},
            format='json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['available'], 2)
        self.assertEqual(response.data['requested'], 3)
        self.assertEqual(StockMovement.objects.filter(item=self.item).count(), 1)

    def test_history_endpoint(self):
        self.client.force_authenticate(self.admin)
        for payload in (
            {'quantity': 20, 'type': 'IN', 'reason': 'restock'},
            {'quantity': 2, 'type': 'OUT', 'reason': 'damaged'},
            {'quantity': 1, 'type': 'OUT', 'reason': 'correction'},
        ):
            response = self.client.post(
                '/api/stock/add-with-history/',
                dict(payload, item_id=self.item.id),
                format='json'
            )
            self.assertEqual(response.status_code, 201)

        response = self.client.get(f'/api/stock/item/{self.item.id}/history/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(response.data['current_stock'], 17)
        reasons = {row['reason'] for row in response.data['breakdown']}
        self.assertEqual(reasons, {'restock', 'damaged', 'correction'})

        newest = response.data['results'][0]
        self.assertEqual(newest['previous_stock'], 18)
        self.assertEqual(newest['new_stock'], 17)
        self.assertEqual(newest['performed_by']['type'], 'Admin')

        response = self.client.get(
            f'/api/stock/item/{self.item.id}/history/', {'type': 'OUT'}
        )
        self.assertEqual(response.data['count'], 2)

    def test_history_breakdown_follows_filters(self):
        """
        Given: Restock, damaged and correction rows for one item
        When: Requesting the history filtered to OUT rows
        Then: The breakdown covers only the OUT reasons on the page
        """
        adjust_stock_with_history(self.item.id, 20, Direction.IN, 'restock', actor=self.admin)
        adjust_stock_with_history(self.item.id, 2, Direction.OUT, 'damaged', actor=self.admin)
        adjust_stock_with_history(self.item.id, 1, Direction.OUT, 'correction', actor=self.admin)

        self.client.force_authenticate(self.admin)
        response = self.client.get(
            f'/api/stock/item/{self.item.id}/history/', {'type': 'OUT'}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            {row['reason']: row['total_quantity'] for row in response.data['breakdown']},
            {'damaged': 2, 'correction': 1}
        )
        self.assertEqual(response.data['current_stock'], 17)

        response = self.client.get(
            f'/api/stock/item/{self.item.id}/history/', {'reason': 'restock'}
        )
        self.assertEqual(
            response.data['breakdown'], [{'reason': 'restock', 'total_quantity': 20, 'count': 1}]
        )

    def test_history_unknown_item(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/stock/item/99999/history/')
        self.assertEqual(response.status_code, 404)


class SeedDataTestCase(TestCase):

    def test_seed_creates_items_with_opening_stock(self):
        call_command('seed_data', stdout=StringIO())

        self.assertEqual(Item.objects.count(), 8)
        self.assertEqual(PaymentMethod.objects.count(), 4)
        for item in Item.objects.all():
            self.assertGreaterEqual(current_stock(item.id), 20)
            history = StockHistory.objects.get(item=item)
            self.assertEqual(history.reason, StockHistory.Reason.INITIAL)
            self.assertEqual(history.reference_type, StockHistory.ReferenceType.SYSTEM)
            self.assertEqual(history.previous_stock, 0)

    def test_seed_is_idempotent(self):
        call_command('seed_data', stdout=StringIO())
        movements = StockMovement.objects.count()

        call_command('seed_data', stdout=StringIO())

        self.assertEqual(Item.objects.count(), 8)
        self.assertEqual(StockMovement.objects.count(), movements)

    def test_seed_clear(self):
        call_command('seed_data', stdout=StringIO())
        call_command('seed_data', '--clear', stdout=StringIO())

        self.assertEqual(Item.objects.count(), 8)
        self.assertEqual(StockMovement.objects.count(), 8)
