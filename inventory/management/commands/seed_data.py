"""
Management command to seed the database with sample data.

Generates:
- LPG cylinder items in the common sizes
- Payment methods (bank transfer, e-wallet, COD, QRIS)
- An initial stock movement with audit history for every item

Usage:
    python manage.py seed_data
    python manage.py seed_data --clear  # Clear existing data first
"""
import random
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from inventory.models import Direction, Item, StockHistory, StockMovement
from inventory.services import current_stock, write_history
from payments.models import PaymentMethod

ITEM_CATALOG = [
    ('LPG Cylinder', '3 kg', Decimal('22000.00'), 'Subsidised household cylinder'),
    ('LPG Cylinder', '5.5 kg', Decimal('95000.00'), 'Bright gas cylinder for small households'),
    ('LPG Cylinder', '12 kg', Decimal('210000.00'), 'Standard household cylinder'),
    ('LPG Cylinder', '50 kg', Decimal('850000.00'), 'Commercial cylinder for restaurants'),
    ('Empty Cylinder', '3 kg', Decimal('150000.00'), 'Empty tube for first-time buyers'),
    ('Empty Cylinder', '12 kg', Decimal('450000.00'), 'Empty tube for first-time buyers'),
    ('Regulator', 'standard', Decimal('85000.00'), 'Low pressure regulator with gauge'),
    ('Gas Hose', '1.8 m', Decimal('45000.00'), 'Reinforced hose with clamps'),
]

PAYMENT_METHODS = [
    ('Bank Transfer BCA', PaymentMethod.Type.BANK_TRANSFER, '1234567890', 'PT Gas Depot'),
    ('GoPay', PaymentMethod.Type.E_WALLET, '081200000000', 'Gas Depot'),
    ('Cash on Delivery', PaymentMethod.Type.COD, '', ''),
    ('QRIS', PaymentMethod.Type.QRIS, '', 'Gas Depot'),
]


class Command(BaseCommand):
    help = 'Seed the database with sample items, payment methods and opening stock'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding',
        )
        parser.add_argument(
            '--min-stock',
            type=int,
            default=20,
            help='Minimum opening stock per item (default: 20)',
        )
        parser.add_argument(
            '--max-stock',
            type=int,
            default=200,
            help='Maximum opening stock per item (default: 200)',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self._clear_data()

        self.stdout.write('Starting database seeding...')

        with transaction.atomic():
            items = self._create_items()
            self._create_payment_methods()
            self._create_opening_stock(items, options['min_stock'], options['max_stock'])

        self.stdout.write(self.style.SUCCESS('Database seeding completed successfully!'))

    def _clear_data(self):
        """Clear all existing data. Ledger rows are removed with queryset deletes."""
        from orders.models import Cart, Transaction
        from payments.models import Payment

        Cart.objects.all().delete()
        Transaction.objects.all().delete()
        Payment.objects.all().delete()
        StockHistory.objects.all().delete()
        StockMovement.objects.all().delete()
        Item.objects.all().delete()
        PaymentMethod.objects.all().delete()

        self.stdout.write(self.style.WARNING('All existing data cleared.'))

    def _create_items(self):
        items = []
        for name, size, price, description in ITEM_CATALOG:
            item, created = Item.objects.get_or_create(
                name=name,
                size=size,
                defaults={'price': price, 'description': description}
            )
            items.append(item)
            if created:
                self.stdout.write(f'  Created item: {name} {size}')

        self.stdout.write(self.style.SUCCESS(f'Created {len(items)} items'))
        return items

    def _create_payment_methods(self):
        for name, method_type, account_number, account_name in PAYMENT_METHODS:
            PaymentMethod.objects.get_or_create(
                name=name,
                defaults={
                    'method_type': method_type,
                    'account_number': account_number,
                    'account_name': account_name,
                }
            )
        self.stdout.write(self.style.SUCCESS(
            f'{PaymentMethod.objects.count()} payment methods available'
        ))

    def _create_opening_stock(self, items, min_stock, max_stock):
        """Give every item without movements an initial IN entry."""
        created = 0
        for item in items:
            if item.stock_movements.exists():
                continue
            quantity = random.randint(min_stock, max_stock)
            previous = current_stock(item.id)
            movement = StockMovement.objects.create(
                item=item,
                quantity=quantity,
                direction=Direction.IN,
                note='Opening stock'
            )
            write_history(
                movement,
                reason=StockHistory.Reason.INITIAL,
                previous_stock=previous,
                reference_type=StockHistory.ReferenceType.SYSTEM,
            )
            created += 1

        self.stdout.write(self.style.SUCCESS(f'Created opening stock for {created} items'))
