import decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

NON_NEG = [django.core.validators.MinValueValidator(decimal.Decimal('0'))]


class Migration(migrations.Migration):

    dependencies = [
        ('pricing', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='pricingconfiguration',
            name='remote_area_fee',
            field=models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=12, validators=NON_NEG),
        ),
        migrations.AddField(
            model_name='pricingconfiguration',
            name='remote_provinces',
            field=models.JSONField(blank=True, default=list, help_text='Provinces that attract the remote area fee'),
        ),
        migrations.CreateModel(
            name='PricingOtherCharge',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('label', models.CharField(default='Other', max_length=80)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=NON_NEG)),
                ('configuration', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='other_charges', to='pricing.pricingconfiguration')),
            ],
            options={
                'db_table': 'pricing_other_charges',
                'ordering': ['configuration', 'id'],
            },
        ),
    ]
