# services/activity/__init__.py
"""activity services package initializer: explicit exports only; no runtime side effects."""

__all__ = ["service", "routes"]
