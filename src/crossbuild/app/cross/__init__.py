"""Cross-version runs."""

from .service import CrossService

__all__ = ["CrossService"]
