"""
Core module for application configuration and assessment logic.

Note: auth is not imported at package level to avoid circular imports with
linxiq.models (which imports datetime_utils from linxiq.core).
Import it directly: from linxiq.core.auth import ...
"""
from .config import settings

__all__ = ["settings"]
