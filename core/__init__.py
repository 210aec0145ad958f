#!/usr/bin/env python3
"""
Core Module for the Crowdfund Platform

Shared infrastructure used by every service package.

COMPONENTS:
    - config/: Environment-driven configuration (dataclasses + dotenv)
    - postgres_client.py: asyncpg pool wrapper with transaction scopes
    - jwt_manager.py: Access token issuance and verification
    - auth_dependencies.py: FastAPI bearer-token and role dependencies
    - errors.py: Error taxonomy mapped to HTTP status codes
    - responses.py: Standard {success, message, data} envelope
"""

__version__ = "1.0.0"
