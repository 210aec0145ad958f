"""
Admin Service

Founder verification and campaign approval for platform administrators.
"""

__version__ = "1.0.0"
__service__ = "admin_service"
