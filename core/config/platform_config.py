#!/usr/bin/env python3
"""Crowdfund platform main configuration

Combines the infrastructure and logging sub-configs with the
platform settings (auth, view tracking, pagination, admin access).
"""
import os
from dataclasses import dataclass, field

from .infra_config import InfraConfig
from .logging_config import LoggingConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


# ===========================================
# Auth Configuration
# ===========================================

@dataclass
class AuthConfig:
    """JWT issuance and verification settings"""
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "crowdfund_platform"
    access_token_expiry: int = 86400  # 24 hours
    admin_keycode: str = ""

    @classmethod
    def from_env(cls) -> 'AuthConfig':
        return cls(
            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_issuer=os.getenv("JWT_ISSUER", "crowdfund_platform"),
            access_token_expiry=_int(os.getenv("JWT_ACCESS_TOKEN_EXPIRY", "86400"), 86400),
            admin_keycode=os.getenv("ADMIN_KEYCODE", ""),
        )


# ===========================================
# Engagement Configuration
# ===========================================

@dataclass
class EngagementConfig:
    """View de-duplication windows and listing limits"""
    authenticated_view_cooldown_hours: int = 24
    anonymous_view_cooldown_hours: int = 6
    most_viewed_limit: int = 3
    recently_viewed_limit: int = 10

    @classmethod
    def from_env(cls) -> 'EngagementConfig':
        return cls(
            authenticated_view_cooldown_hours=_int(os.getenv("VIEW_COOLDOWN_AUTH_HOURS", "24"), 24),
            anonymous_view_cooldown_hours=_int(os.getenv("VIEW_COOLDOWN_ANON_HOURS", "6"), 6),
            most_viewed_limit=_int(os.getenv("MOST_VIEWED_LIMIT", "3"), 3),
            recently_viewed_limit=_int(os.getenv("RECENTLY_VIEWED_LIMIT", "10"), 10),
        )


# ===========================================
# Main Platform Configuration
# ===========================================

@dataclass
class PlatformConfig:
    """Main configuration for the crowdfund platform API"""

    # Service identity
    service_name: str = "crowdfund_platform"
    service_port: int = 5000
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    api_prefix: str = "/api"

    # Behaviour
    auto_migrate: bool = False
    max_page_size: int = 100
    default_campaign_duration_days: int = 90
    payment_reference_prefix: str = "CFP"

    # Sub-configs
    infrastructure: InfraConfig = field(default_factory=InfraConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    engagement: EngagementConfig = field(default_factory=EngagementConfig)

    @classmethod
    def from_env(cls) -> 'PlatformConfig':
        """Load configuration from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            service_name=os.getenv("SERVICE_NAME", "crowdfund_platform"),
            service_port=_int(os.getenv("SERVICE_PORT", "5000"), 5000),
            version=os.getenv("SERVICE_VERSION", "1.0.0"),
            environment=env,
            debug=_bool(os.getenv("DEBUG", "false")),
            api_prefix=os.getenv("API_PREFIX", "/api"),
            auto_migrate=_bool(os.getenv("AUTO_MIGRATE", "false")),
            max_page_size=_int(os.getenv("MAX_PAGE_SIZE", "100"), 100),
            default_campaign_duration_days=_int(os.getenv("DEFAULT_CAMPAIGN_DURATION_DAYS", "90"), 90),
            payment_reference_prefix=os.getenv("PAYMENT_REFERENCE_PREFIX", "CFP"),
            infrastructure=InfraConfig.from_env(),
            logging=LoggingConfig.from_env(),
            auth=AuthConfig.from_env(),
            engagement=EngagementConfig.from_env(),
        )
