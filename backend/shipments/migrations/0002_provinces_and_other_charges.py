import decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('shipments', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='shipment',
            name='pickup_province',
            field=models.CharField(blank=True, default='', max_length=80),
        ),
        migrations.AddField(
            model_name='shipment',
            name='delivery_province',
            field=models.CharField(blank=True, default='', max_length=80),
        ),
        migrations.AddField(
            model_name='shipment',
            name='other_charges',
            field=models.JSONField(blank=True, default=list, help_text='Itemised extras: [{label, amount}]'),
        ),
        migrations.AddField(
            model_name='shipment',
            name='remote_surcharge',
            field=models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=12),
        ),
    ]
