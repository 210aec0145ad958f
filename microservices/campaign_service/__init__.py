"""
Campaign Service

Founder campaign management:
- Draft campaigns with owned content (sections, images, assets,
  milestones, team members, risks)
- Publication of drafts into campaigns awaiting approval
- Public campaign browsing with filters, search and pagination
- Owner edits and milestone progress
"""

__version__ = "1.0.0"
__service__ = "campaign_service"
