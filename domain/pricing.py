"""Domain Service - Pricing"""
from decimal import Decimal

from domain.exceptions import InvalidRange, InvalidRate
from domain.value_objects import DateRange


def compute_total_price(nightly_rate, date_range: DateRange) -> Decimal:
    """Nightly rate times the number of nights (partial nights count as a full night)"""
    nights = date_range.nights()
    if nights <= 0:
        raise InvalidRange("Stay must last at least one night")

    rate = Decimal(str(nightly_rate))
    if rate < 0:
        raise InvalidRate(f"Nightly rate must not be negative: {rate}")

    return rate * nights
