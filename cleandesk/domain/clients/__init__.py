"""Clients domain: clients, leads and their service properties"""

from .router import leads_router, properties_router, router

__all__ = ["router", "leads_router", "properties_router"]
