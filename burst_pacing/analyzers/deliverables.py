"""Buy type to deliverable metric mapping."""

from typing import Dict, Optional

from burst_pacing.models.pacing import BuyType, Channel, DeliverableKey

DELIVERABLE_KEYS: Dict[BuyType, Optional[DeliverableKey]] = {
    BuyType.CPM: DeliverableKey.IMPRESSIONS,
    BuyType.CPC: DeliverableKey.CLICKS,
    BuyType.CPA: DeliverableKey.CONVERSIONS,
    BuyType.LEADS: DeliverableKey.CONVERSIONS,
    BuyType.BONUS: DeliverableKey.CONVERSIONS,
    BuyType.CPV: DeliverableKey.VIEWS,
    BuyType.FIXED_COST: None,
}


class DeliverableKeyResolver:
    """
    Resolve which delivery metric counts as a line item's deliverable.

    Every container reads the shared DELIVERABLE_KEYS table. A channel whose
    buy-type vocabulary genuinely differs registers an override for just
    that channel instead of copying the table.
    """

    def __init__(
        self,
        channel_overrides: Optional[
            Dict[Channel, Dict[BuyType, Optional[DeliverableKey]]]
        ] = None
    ):
        """
        Args:
            channel_overrides: Per-channel replacements for specific buy types
        """
        self.channel_overrides = channel_overrides or {}

    def resolve(
        self,
        buy_type,
        channel: Optional[Channel] = None
    ) -> Optional[DeliverableKey]:
        """
        Args:
            buy_type: BuyType or raw string (case-insensitive)
            channel: Optional channel for overrides

        Returns:
            DeliverableKey, or None for spend-only pacing
        """
        parsed = BuyType.parse(buy_type)
        if parsed is None:
            return None

        overrides = self.channel_overrides.get(channel, {})
        if parsed in overrides:
            return overrides[parsed]
        return DELIVERABLE_KEYS.get(parsed)
