"""
Platform Service

Application assembly for the crowdfund platform:
- Database schema bootstrap
- Service factory wiring repositories into services
- FastAPI application with envelope error handling and health checks
"""

__version__ = "1.0.0"
__service__ = "platform_service"
