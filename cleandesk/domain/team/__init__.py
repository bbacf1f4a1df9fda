"""Team domain: organizations and memberships"""

from .router import orgs_router, router

__all__ = ["orgs_router", "router"]
