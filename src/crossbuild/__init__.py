"""Cross-version build orchestration."""

__version__ = "0.3.0"

__all__ = ["__version__"]
