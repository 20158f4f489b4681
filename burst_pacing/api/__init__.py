"""Mock data sources for media plans and platform delivery."""

from burst_pacing.api.mock_platform_api import MockPlatformAPI
from burst_pacing.api.internal_tracker import MockMediaPlanTracker

__all__ = [
    "MockPlatformAPI",
    "MockMediaPlanTracker",
]
