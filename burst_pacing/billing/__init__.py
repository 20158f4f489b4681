"""Monthly billing allocation."""

from burst_pacing.billing.allocator import (
    BillingAllocator,
    BillingMismatch,
    BillingSchedule,
    FeeTerms,
)

__all__ = ["BillingAllocator", "BillingMismatch", "BillingSchedule", "FeeTerms"]
