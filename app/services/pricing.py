from __future__ import annotations

from dataclasses import dataclass

from app.schemas.catalog import PropertyRef
from app.services.intervals import DateInterval
from app.services.validator import validate_range

CLEANING_FEE_RATE = 0.15
SERVICE_FEE_RATE = 0.08


@dataclass(frozen=True)
class PriceQuote:
    property_id: str
    nights: int
    nightly_rate: float
    accommodation: float
    cleaning_fee: float
    service_fee: float

    @property
    def total(self) -> float:
        return round(self.accommodation + self.cleaning_fee + self.service_fee, 2)


def quote_stay(
    property_ref: PropertyRef,
    interval: DateInterval,
    cleaning_fee_rate: float = CLEANING_FEE_RATE,
    service_fee_rate: float = SERVICE_FEE_RATE,
) -> PriceQuote:
    """Nightly price times nights, plus a cleaning fee of one night's share
    and a service fee on the accommodation subtotal."""
    validate_range(interval)
    nights = (interval.end - interval.start).days
    nightly_rate = float(property_ref.price or 0.0)
    accommodation = round(nights * nightly_rate, 2)
    return PriceQuote(
        property_id=property_ref.id,
        nights=nights,
        nightly_rate=nightly_rate,
        accommodation=accommodation,
        cleaning_fee=round(nightly_rate * cleaning_fee_rate, 2),
        service_fee=round(accommodation * service_fee_rate, 2),
    )
