"""Service requests domain: website intake and request management"""

from .router import ingest_router, router

__all__ = ["ingest_router", "router"]
