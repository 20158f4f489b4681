"""Window resolution and proration calculators."""

from burst_pacing.calculators.window import WindowResolver
from burst_pacing.calculators.proration import (
    ProrationCalculator,
    inclusive_day_count,
    iter_days,
)

__all__ = [
    "WindowResolver",
    "ProrationCalculator",
    "inclusive_day_count",
    "iter_days",
]
