import decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ('CREATED', 'Created'), ('PICKUP_SCHEDULED', 'Pickup scheduled'), ('PICKED_UP', 'Picked up'),
    ('AT_ORIGIN_HUB', 'At origin hub'), ('IN_TRANSIT', 'In transit'), ('AT_DESTINATION_HUB', 'At destination hub'),
    ('OUT_FOR_DELIVERY', 'Out for delivery'), ('DELIVERED', 'Delivered'), ('ON_HOLD', 'On hold'),
    ('RETURN_TO_SENDER', 'Return to sender'), ('CANCELLED', 'Cancelled'),
]
LOG_TYPES = [
    ('INFO', 'Info'), ('WARN', 'Warn'), ('ERROR', 'Error'), ('STATUS', 'Status'),
    ('LOCATION', 'Location'), ('ASSIGN', 'Assign'), ('PRICING', 'Pricing'), ('PAYMENT', 'Payment'),
]


def money():
    return models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=12)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('pricing', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Shipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tracking_id', models.CharField(max_length=32, unique=True)),
                ('status', models.CharField(choices=STATUS_CHOICES, db_index=True, default='CREATED', max_length=24)),
                ('receiver_name', models.CharField(blank=True, default='', max_length=120)),
                ('receiver_phone', models.CharField(blank=True, default='', max_length=32)),
                ('pickup_address', models.TextField(blank=True, default='')),
                ('delivery_address', models.TextField(blank=True, default='')),
                ('service_type', models.CharField(default='EXPRESS', max_length=30)),
                ('zone_name', models.CharField(blank=True, default='', max_length=60)),
                ('pieces', models.PositiveIntegerField(default=1)),
                ('box_kind', models.CharField(blank=True, choices=[('PRESET', 'Preset box'), ('CUSTOM', 'Custom box')], default='', max_length=10)),
                ('box_code', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('length_cm', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('width_cm', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('height_cm', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('weight_kg', models.DecimalField(decimal_places=3, default=decimal.Decimal('0'), max_digits=10)),
                ('is_cod', models.BooleanField(default=False)),
                ('cod_amount', money()),
                ('volumetric_divisor', models.PositiveIntegerField(default=5000)),
                ('volumetric_weight_kg', models.DecimalField(decimal_places=4, default=decimal.Decimal('0'), max_digits=12)),
                ('chargeable_weight_kg', models.DecimalField(decimal_places=4, default=decimal.Decimal('0'), max_digits=12)),
                ('currency', models.CharField(default='AFN', max_length=6)),
                ('base_charge', money()),
                ('service_charge', money()),
                ('fuel_surcharge', money()),
                ('other_fees', money()),
                ('cod_fee', money()),
                ('charges_total', money()),
                ('tax', money()),
                ('grand_total', money()),
                ('price_breakdown', models.JSONField(blank=True, default=dict)),
                ('needs_reprice', models.BooleanField(db_index=True, default=False)),
                ('last_priced_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_reason', models.CharField(blank=True, default='', max_length=240)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('payment_mode', models.CharField(choices=[('PICKUP', 'Pay at pickup'), ('DELIVERY', 'Pay on delivery')], default='PICKUP', max_length=10)),
                ('payment_method', models.CharField(choices=[('CASH', 'Cash'), ('ONLINE', 'Online')], default='CASH', max_length=10)),
                ('total_due', money()),
                ('total_paid', money()),
                ('balance', money()),
                ('payment_status', models.CharField(choices=[('PENDING', 'Pending'), ('PARTIAL', 'Partially paid'), ('PAID', 'Paid')], default='PENDING', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('sender', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shipments', to=settings.AUTH_USER_MODEL)),
                ('pickup_agent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pickup_shipments', to=settings.AUTH_USER_MODEL)),
                ('delivery_agent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='delivery_shipments', to=settings.AUTH_USER_MODEL)),
                ('pricing_version', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='shipments', to='pricing.pricingconfiguration')),
                ('cancelled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'shipments',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['sender', '-created_at'], name='shipment_sender_created_idx'),
                    models.Index(fields=['needs_reprice', 'status'], name='shipment_reprice_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ShipmentLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=LOG_TYPES, default='INFO', max_length=10)),
                ('message', models.CharField(max_length=500)),
                ('meta', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('shipment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='logs', to='shipments.shipment')),
            ],
            options={
                'db_table': 'shipment_logs',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
