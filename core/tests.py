"""
Tests for shared infrastructure.

Test Cases:
1. Document number format and daily sequences
2. Error envelope for domain and framework errors
3. Audit actor resolution
"""
import re
from datetime import date

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from core.authentication import actor_name, actor_type
from core.exceptions import InsufficientStockError
from core.models import NumberSequence
from core.numbering import (
    format_number,
    generate_invoice_number,
    generate_number,
    generate_receipt_number,
)

User = get_user_model()


class NumberingTestCase(TestCase):
    """Test cases for invoice and receipt numbering."""

    def test_format_number(self):
        self.assertEqual(
            format_number('INV', date(2024, 1, 5), 7),
            'INV-20240105-000007'
        )

    def test_sequence_increments_within_a_day(self):
        day = date(2024, 3, 1)
        first = generate_number('INV', day)
        second = generate_number('INV', day)

        self.assertEqual(first, 'INV-20240301-000001')
        self.assertEqual(second, 'INV-20240301-000002')
        self.assertEqual(
            NumberSequence.objects.get(prefix='INV', day=day).last_value, 2
        )

    def test_sequence_restarts_every_day(self):
        generate_number('INV', date(2024, 3, 1))
        generate_number('INV', date(2024, 3, 1))

        self.assertEqual(generate_number('INV', date(2024, 3, 2)), 'INV-20240302-000001')

    def test_invoice_and_receipt_sequences_are_independent(self):
        invoice = generate_invoice_number()
        receipt = generate_receipt_number()

        self.assertRegex(invoice, r'^INV-\d{8}-000001$')
        self.assertRegex(receipt, r'^PAY-\d{8}-000001$')

    def test_numbers_are_unique(self):
        numbers = [generate_invoice_number() for _ in range(25)]
        self.assertEqual(len(set(numbers)), 25)
        for number in numbers:
            self.assertTrue(re.match(r'^INV-\d{8}-\d{6}$', number))


class ErrorEnvelopeTestCase(TestCase):
    """Every error response carries success=false and a message."""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username='buyer', password='secret')

    def test_not_found_envelope(self):
        self.client.force_authenticate(self.user)
        response = self.client.get('/api/items/99999/')

        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.data['success'])
        self.assertTrue(response.data['message'])

    def test_unauthenticated_envelope(self):
        response = self.client.get('/api/cart/')

        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.data['success'])

    def test_field_errors_are_listed(self):
        self.client.force_authenticate(self.user)
        response = self.client.post('/api/cart/add/', {'qty': 1}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data['success'])
        self.assertIn('item_id', response.data['errors'])
        self.assertTrue(response.data['message'].startswith('item_id:'))

    def test_forbidden_for_non_admin(self):
        self.client.force_authenticate(self.user)
        response = self.client.get('/api/stock/')

        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.data['success'])

    def test_insufficient_stock_message(self):
        error = InsufficientStockError('LPG Cylinder', 2, 3)

        self.assertEqual(
            str(error.detail),
            'Insufficient stock for LPG Cylinder. Available: 2, Requested: 3'
        )
        self.assertEqual(error.status_code, 400)


class ActorTestCase(TestCase):

    def test_actor_type(self):
        admin = User.objects.create_user(username='admin', is_staff=True)
        buyer = User.objects.create_user(username='buyer')

        self.assertEqual(actor_type(admin), 'Admin')
        self.assertEqual(actor_type(buyer), 'User')

    def test_actor_name(self):
        named = User.objects.create_user(username='rina', first_name='Rina', last_name='Putri')
        plain = User.objects.create_user(username='budi')

        self.assertEqual(actor_name(named), 'Rina Putri')
        self.assertEqual(actor_name(plain), 'budi')
        self.assertEqual(actor_name(None), 'System')


class HealthCheckTestCase(TestCase):

    def test_health_check(self):
        response = self.client.get('/health/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'healthy')
