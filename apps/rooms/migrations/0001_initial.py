from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.db.models.functions.text
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('hotels', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Room',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(blank=True, null=True)),
                ('is_deleted', models.BooleanField(db_index=True, default=False)),
                ('room_number', models.CharField(max_length=20)),
                ('type', models.PositiveSmallIntegerField(choices=[(1, 'Standard'), (2, 'Deluxe'), (3, 'Suite'), (4, 'Presidential')], default=1)),
                ('price', models.DecimalField(decimal_places=2, help_text='Nightly rate', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01')), django.core.validators.MaxValueValidator(Decimal('10000'))])),
                ('capacity', models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(10)])),
                ('hotel', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rooms', to='hotels.hotel')),
            ],
            options={
                'db_table': 'rooms',
                'ordering': ['hotel_id', 'room_number'],
                'abstract': False,
                'base_manager_name': 'all_objects',
                'indexes': [
                    models.Index(fields=['type'], name='rooms_type_idx'),
                    models.Index(fields=['price'], name='rooms_price_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower('room_number'),
                        models.F('hotel'),
                        condition=models.Q(('is_deleted', False)),
                        name='uniq_room_number_per_hotel',
                    ),
                ],
            },
        ),
    ]
