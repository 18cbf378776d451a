# services/auth/__init__.py
"""auth services package initializer: explicit exports only; no runtime side effects."""

__all__ = ["service", "routes"]
