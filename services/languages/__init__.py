# services/languages/__init__.py
"""languages services package initializer: explicit exports only; no runtime side effects."""

__all__ = ["mapper", "validation", "service", "routes"]
