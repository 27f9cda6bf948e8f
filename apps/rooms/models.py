from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models.functions import Lower

from apps.core.models import BaseModel


class RoomType(models.IntegerChoices):
    STANDARD = 1, 'Standard'
    DELUXE = 2, 'Deluxe'
    SUITE = 3, 'Suite'
    PRESIDENTIAL = 4, 'Presidential'


# Maximum guests allowed per room type
ROOM_TYPE_CAPACITY = {
    RoomType.STANDARD: 2,
    RoomType.DELUXE: 3,
    RoomType.SUITE: 4,
    RoomType.PRESIDENTIAL: 6,
}

MAX_ROOM_PRICE = Decimal('10000')
MAX_ROOM_CAPACITY = 10


class Room(BaseModel):
    hotel = models.ForeignKey(
        'hotels.Hotel',
        on_delete=models.CASCADE,
        related_name='rooms'
    )
    room_number = models.CharField(max_length=20)
    type = models.PositiveSmallIntegerField(choices=RoomType.choices, default=RoomType.STANDARD)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01')), MaxValueValidator(MAX_ROOM_PRICE)],
        help_text="Nightly rate"
    )
    capacity = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(MAX_ROOM_CAPACITY)]
    )

    class Meta(BaseModel.Meta):
        db_table = 'rooms'
        ordering = ['hotel_id', 'room_number']
        constraints = [
            models.UniqueConstraint(
                Lower('room_number'), 'hotel',
                condition=models.Q(is_deleted=False),
                name='uniq_room_number_per_hotel',
            ),
        ]
        indexes = [
            models.Index(fields=['type'], name='rooms_type_idx'),
            models.Index(fields=['price'], name='rooms_price_idx'),
        ]

    def __str__(self):
        return f"Room {self.room_number} ({self.get_type_display()})"
