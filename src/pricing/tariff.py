from pydantic import BaseModel, Field

from trip import ValidationStatus


class FareBounds(BaseModel):
    """Official metered fare for a distance and the allowed negotiated range."""

    official_fare: float = Field(ge=0)
    min_allowed_fare: float
    max_allowed_fare: float

    def classify(self, fare: float) -> ValidationStatus:
        if fare < self.min_allowed_fare:
            return ValidationStatus.BELOW_MIN_FARE
        if fare > self.max_allowed_fare:
            return ValidationStatus.ABOVE_MAX_FARE
        return ValidationStatus.ACCEPTED


class TariffCalculator:
    """Computes the official tariff and the plausibility window around it."""

    def __init__(
        self,
        base_fare: float,
        per_km_rate: float,
        min_modifier: float = 0.15,
        max_modifier: float = 1.0,
    ):
        if max_modifier < min_modifier:
            raise ValueError("max_modifier must be >= min_modifier")
        self.base_fare = base_fare
        self.per_km_rate = per_km_rate
        self.min_modifier = min_modifier
        self.max_modifier = max_modifier

    def official_fare(self, distance_km: float) -> float:
        if distance_km <= 0:
            raise ValueError("Distance must be positive")
        return self.base_fare + self.per_km_rate * distance_km

    def bounds(self, distance_km: float) -> FareBounds:
        official = self.official_fare(distance_km)
        return FareBounds(
            official_fare=round(official, 2),
            min_allowed_fare=round(official * (1 + self.min_modifier), 2),
            max_allowed_fare=round(official * (1 + self.max_modifier), 2),
        )
