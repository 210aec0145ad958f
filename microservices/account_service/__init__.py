"""
Account Service

Founder, investor and admin accounts: registration, login with
self-issued JWTs, and profiles.
"""

__version__ = "1.0.0"
__service__ = "account_service"
