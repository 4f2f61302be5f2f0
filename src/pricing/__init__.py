"""Fare plausibility rules: official tariff bounds and IQR outlier fences."""

from .outliers import IQRBounds, interquartile_range
from .tariff import FareBounds, TariffCalculator

__all__ = ["FareBounds", "TariffCalculator", "IQRBounds", "interquartile_range"]
