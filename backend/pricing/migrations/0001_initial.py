import decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

NON_NEG = [django.core.validators.MinValueValidator(decimal.Decimal('0'))]
PCT = [django.core.validators.MinValueValidator(decimal.Decimal('0')), django.core.validators.MaxValueValidator(decimal.Decimal('100'))]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PricingConfiguration',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Version tag, e.g. 2025-Q3', max_length=120, unique=True)),
                ('mode', models.CharField(choices=[('WEIGHT', 'By weight and pieces'), ('VOLUME', 'By volume')], default='WEIGHT', max_length=10)),
                ('currency', models.CharField(default='AFN', max_length=6)),
                ('base_fee', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=12, validators=NON_NEG)),
                ('per_kg_rate', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True, validators=NON_NEG)),
                ('per_piece_rate', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True, validators=NON_NEG)),
                ('price_per_cubic_cm', models.DecimalField(blank=True, decimal_places=6, max_digits=14, null=True, validators=NON_NEG)),
                ('price_per_cubic_meter', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True, validators=NON_NEG)),
                ('min_charge', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=NON_NEG)),
                ('tax_percent', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=5, validators=PCT)),
                ('fuel_surcharge_percent', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=5, validators=PCT)),
                ('other_fixed_fees', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=12, validators=NON_NEG)),
                ('cod_fee_percent', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=5, validators=PCT)),
                ('cod_fee_min', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=12, validators=NON_NEG)),
                ('volumetric_divisor', models.PositiveIntegerField(default=5000, help_text='cm3 per kg', validators=[django.core.validators.MinValueValidator(1)])),
                ('active', models.BooleanField(db_index=True, default=False)),
                ('archived', models.BooleanField(db_index=True, default=False)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'pricing_configurations',
                'ordering': ['-active', '-updated_at'],
            },
        ),
        migrations.AddConstraint(
            model_name='pricingconfiguration',
            constraint=models.UniqueConstraint(condition=models.Q(('active', True)), fields=('active',), name='pricing_single_active'),
        ),
        migrations.CreateModel(
            name='PricingZone',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=60)),
                ('base_fee', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=NON_NEG)),
                ('per_kg_rate', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True, validators=NON_NEG)),
                ('per_piece_rate', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True, validators=NON_NEG)),
                ('min_charge', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=NON_NEG)),
                ('configuration', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='zones', to='pricing.pricingconfiguration')),
            ],
            options={
                'db_table': 'pricing_zones',
                'ordering': ['configuration', 'name'],
                'unique_together': {('configuration', 'name')},
            },
        ),
        migrations.CreateModel(
            name='ServiceMultiplier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('service_type', models.CharField(help_text='e.g. EXPRESS, STANDARD, SAME_DAY', max_length=30)),
                ('multiplier', models.DecimalField(decimal_places=3, default=decimal.Decimal('1'), max_digits=6, validators=NON_NEG)),
                ('configuration', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='service_multipliers', to='pricing.pricingconfiguration')),
            ],
            options={
                'db_table': 'pricing_service_multipliers',
                'ordering': ['configuration', 'service_type'],
                'unique_together': {('configuration', 'service_type')},
            },
        ),
    ]
