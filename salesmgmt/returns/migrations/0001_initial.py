# Generated manually
import django.db.models.deletion
import django.utils.timezone
import salesmgmt.returns.models
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
        ('catalog', '0001_initial'),
        ('sales', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Return',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('return_number', models.CharField(default=salesmgmt.returns.models.generate_return_number, max_length=50, unique=True)),
                ('return_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('reason', models.CharField(choices=[('DEFECTIVE', 'Defective Product'), ('WRONG_ITEM', 'Wrong Item Sent'), ('CUSTOMER_CHANGE_MIND', 'Customer Changed Mind'), ('DAMAGED_IN_SHIPPING', 'Damaged in Shipping'), ('NOT_AS_DESCRIBED', 'Not as Described'), ('EXPIRED', 'Expired Product'), ('DUPLICATE_ORDER', 'Duplicate Order'), ('OTHER', 'Other')], max_length=30)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected'), ('REFUNDED', 'Refunded'), ('EXCHANGED', 'Exchanged'), ('CANCELLED', 'Cancelled')], default='PENDING', max_length=20)),
                ('total_refund_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('notes', models.TextField(blank=True, null=True)),
                ('processed_by', models.CharField(blank=True, max_length=150, null=True)),
                ('processed_date', models.DateTimeField(blank=True, null=True)),
                ('refund_method', models.CharField(blank=True, choices=[('ORIGINAL_PAYMENT', 'Original Payment Method'), ('STORE_CREDIT', 'Store Credit'), ('CASH', 'Cash'), ('BANK_TRANSFER', 'Bank Transfer'), ('CHECK', 'Check')], max_length=20, null=True)),
                ('refund_reference', models.CharField(blank=True, max_length=100, null=True)),
                ('refund_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='returns', to='parties.customer')),
                ('original_sale', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='returns', to='sales.sale')),
            ],
            options={
                'db_table': 'returns',
                'ordering': ['-return_date'],
                'indexes': [
                    models.Index(fields=['status'], name='returns_status_idx'),
                    models.Index(fields=['-return_date'], name='returns_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReturnItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('return_quantity', models.IntegerField()),
                ('original_unit_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('refund_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('restocking_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('item_condition', models.CharField(blank=True, choices=[('NEW', 'New'), ('LIKE_NEW', 'Like New'), ('GOOD', 'Good'), ('FAIR', 'Fair'), ('POOR', 'Poor'), ('DAMAGED', 'Damaged'), ('DEFECTIVE', 'Defective')], max_length=20, null=True)),
                ('condition_notes', models.TextField(blank=True, null=True)),
                ('serial_numbers', models.TextField(blank=True, null=True)),
                ('is_restockable', models.BooleanField(default=True)),
                ('disposal_reason', models.TextField(blank=True, null=True)),
                ('original_sale_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='return_items', to='sales.saleitem')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='return_items', to='catalog.product')),
                ('return_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='returns.return')),
            ],
            options={
                'db_table': 'return_items',
            },
        ),
    ]
