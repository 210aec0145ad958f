"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - api/        : Routers exercised through the ASGI app (in-memory factory)
    - component/  : Services against in-memory repositories
    - unit/       : Pure functions and models, no I/O
    - integration/: Repositories against PostgreSQL (skipped when unreachable)
    - contracts/  : Test data factories shared by every layer
"""
import os
import sys

import pytest

# Set testing environment BEFORE any project imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-crowdfund-platform-tests")
os.environ.setdefault("ADMIN_KEYCODE", "test-admin-keycode")
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line("markers", "unit: pure functions and models, no I/O")
    config.addinivalue_line("markers", "component: services against in-memory repositories")
    config.addinivalue_line("markers", "api: routers exercised through the ASGI app")
    config.addinivalue_line("markers", "integration: repositories against a real PostgreSQL database")


def pytest_collection_modifyitems(config, items):
    """Mark tests by the layer directory they live in"""
    for item in items:
        path = str(item.fspath)
        for layer in ("unit", "component", "api", "integration"):
            if f"{os.sep}tests{os.sep}{layer}{os.sep}" in path:
                item.add_marker(getattr(pytest.mark, layer))
