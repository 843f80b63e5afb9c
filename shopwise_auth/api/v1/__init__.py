"""
API v1 package.

Contains versioned API routes for the storefront account service.
"""

from shopwise_auth.api.v1.routes import router

__all__ = ["router"]
