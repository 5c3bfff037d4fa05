from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Item',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, help_text='Item name for display and search', max_length=200)),
                ('description', models.TextField(blank=True, default='', help_text='Optional item description')),
                ('size', models.CharField(db_index=True, help_text='Cylinder size label, e.g. 3 kg or 12 kg', max_length=50)),
                ('price', models.DecimalField(decimal_places=2, help_text='Current unit price (cannot be negative)', max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('image', models.CharField(blank=True, default='', help_text='Image URL', max_length=500)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], db_index=True, default='active', help_text='Whether the item is listed in the catalog', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Item',
                'verbose_name_plural': 'Items',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['name', 'status'], name='inventory_i_name_9b1f0e_idx'),
                    models.Index(fields=['size', 'status'], name='inventory_i_size_4c2d7a_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(help_text='Magnitude of the movement', validators=[django.core.validators.MinValueValidator(1)])),
                ('direction', models.CharField(choices=[('IN', 'Stock In'), ('OUT', 'Stock Out')], help_text='IN adds to stock, OUT removes from it', max_length=3)),
                ('note', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('item', models.ForeignKey(help_text='Item whose stock moved', on_delete=django.db.models.deletion.PROTECT, related_name='stock_movements', to='inventory.item')),
            ],
            options={
                'verbose_name': 'Stock Movement',
                'verbose_name_plural': 'Stock Movements',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['item', 'direction'], name='inventory_s_item_id_5e8a31_idx'),
                    models.Index(fields=['item', 'created_at'], name='inventory_s_item_id_a07c42_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('direction', models.CharField(choices=[('IN', 'Stock In'), ('OUT', 'Stock Out')], max_length=3)),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('reason', models.CharField(choices=[('restock', 'Restock'), ('sold', 'Sold'), ('purchased', 'Purchased'), ('damaged', 'Damaged'), ('correction', 'Correction'), ('return', 'Return'), ('initial', 'Initial Stock'), ('other', 'Other')], db_index=True, max_length=20)),
                ('note', models.TextField(blank=True, default='')),
                ('previous_stock', models.IntegerField(help_text='Fold before the movement')),
                ('new_stock', models.IntegerField(help_text='Fold after the movement')),
                ('performed_by_type', models.CharField(choices=[('User', 'User'), ('Admin', 'Admin')], default='Admin', max_length=5)),
                ('performed_by_name', models.CharField(default='System', max_length=150)),
                ('reference_id', models.CharField(blank=True, default='', max_length=64)),
                ('reference_type', models.CharField(choices=[('transaction', 'Transaction'), ('order', 'Order'), ('manual', 'Manual'), ('system', 'System')], default='manual', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stock_history', to='inventory.item')),
                ('movement', models.OneToOneField(blank=True, help_text='Ledger entry this audit row describes', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='history', to='inventory.stockmovement')),
                ('performed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stock_history', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Stock History',
                'verbose_name_plural': 'Stock History',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['item', 'created_at'], name='inventory_s_item_id_3f9d18_idx'),
                    models.Index(fields=['performed_by'], name='inventory_s_perform_b6e250_idx'),
                ],
            },
        ),
    ]
