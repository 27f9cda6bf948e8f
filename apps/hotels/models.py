from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.core.models import BaseModel


class Hotel(BaseModel):
    name = models.CharField(max_length=200)
    address = models.CharField(max_length=500)
    city = models.CharField(max_length=100)
    country = models.CharField(max_length=100)
    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('5'))],
        help_text="Star rating between 0 and 5"
    )

    class Meta(BaseModel.Meta):
        db_table = 'hotels'
        ordering = ['name']
        indexes = [
            models.Index(fields=['city'], name='hotels_city_idx'),
            models.Index(fields=['country'], name='hotels_country_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.city})"
