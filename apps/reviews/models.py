from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.core.models import BaseModel


class Review(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews'
    )
    hotel = models.ForeignKey(
        'hotels.Hotel',
        on_delete=models.CASCADE,
        related_name='reviews'
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    comment = models.TextField(max_length=1000, blank=True, default='')

    class Meta(BaseModel.Meta):
        db_table = 'reviews'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rating__gte=1, rating__lte=5),
                name='review_rating_between_1_and_5',
            ),
            models.UniqueConstraint(
                fields=['user', 'hotel'],
                condition=models.Q(is_deleted=False),
                name='uniq_active_review_per_user_hotel',
            ),
        ]

    def __str__(self):
        return f"{self.rating}/5 for {self.hotel_id} by {self.user_id}"
