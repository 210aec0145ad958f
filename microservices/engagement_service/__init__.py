"""
Engagement Service

Campaign view tracking (with per-viewer cool-down), favorites and
browsing history.
"""

__version__ = "1.0.0"
__service__ = "engagement_service"
