from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PaymentSucceeded:
    payment_id: int
    booking_id: int
    user_id: int
    amount: Decimal
    transaction_id: str
