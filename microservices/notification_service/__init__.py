"""
Notification Service

In-app notifications produced by platform workflows:
- Campaign approval / rejection
- Founder verification decisions
- Funding received by a campaign
"""

__version__ = "1.0.0"
__service__ = "notification_service"
