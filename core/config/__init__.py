#!/usr/bin/env python3
"""Configuration for the crowdfund platform

- infra_config: PostgreSQL connection and pool
- logging_config: Root logger setup
- platform_config: Service identity, auth, engagement windows, pagination

Values come from the process environment. An env file is loaded first
without overriding variables that are already set: ``ENV_FILE`` when
given, otherwise ``.env.<ENV>`` and then ``.env`` in the working directory.
"""
import os

from dotenv import load_dotenv

from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .platform_config import AuthConfig, EngagementConfig, PlatformConfig


def _load_env_files() -> None:
    explicit = os.getenv("ENV_FILE")
    if explicit:
        load_dotenv(explicit, override=False)
        return
    env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
    for candidate in (f".env.{env}", ".env"):
        if os.path.exists(candidate):
            load_dotenv(candidate, override=False)


_load_env_files()

settings = PlatformConfig.from_env()


def get_settings() -> PlatformConfig:
    """Process-wide settings"""
    return settings


def reload_settings() -> PlatformConfig:
    """Re-read settings from the environment (tests, config reloads)"""
    global settings
    settings = PlatformConfig.from_env()
    return settings


__all__ = [
    'PlatformConfig',
    'AuthConfig',
    'EngagementConfig',
    'InfraConfig',
    'LoggingConfig',
    'get_settings',
    'reload_settings',
    'settings',
]
