# Generated manually
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Promotion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, null=True)),
                ('type', models.CharField(choices=[('PERCENTAGE', 'Percentage Discount'), ('FIXED_AMOUNT', 'Fixed Amount Discount'), ('FREE_SHIPPING', 'Free Shipping'), ('BUY_X_GET_Y', 'Buy X Get Y')], max_length=20)),
                ('discount_value', models.DecimalField(decimal_places=2, max_digits=12)),
                ('minimum_order_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('maximum_discount_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('start_date', models.DateTimeField()),
                ('end_date', models.DateTimeField()),
                ('is_active', models.BooleanField(default=True)),
                ('usage_limit', models.IntegerField(blank=True, null=True)),
                ('usage_count', models.IntegerField(default=0)),
                ('customer_eligibility', models.CharField(choices=[('ALL', 'All Customers'), ('VIP_ONLY', 'VIP Customers Only'), ('NEW_CUSTOMERS', 'New Customers'), ('RETURNING_CUSTOMERS', 'Returning Customers'), ('PREMIUM_ONLY', 'Premium Customers Only')], default='ALL', max_length=30)),
                ('coupon_code', models.CharField(blank=True, max_length=50, null=True, unique=True)),
                ('auto_apply', models.BooleanField(default=False)),
                ('stackable', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('applicable_categories', models.ManyToManyField(blank=True, related_name='promotions', to='catalog.category')),
                ('applicable_products', models.ManyToManyField(blank=True, related_name='promotions', to='catalog.product')),
            ],
            options={
                'db_table': 'promotions',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['is_active', 'start_date', 'end_date'], name='promotions_active_idx')],
            },
        ),
    ]
