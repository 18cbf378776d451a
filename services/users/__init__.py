# services/users/__init__.py
"""users services package initializer: explicit exports only; no runtime side effects."""

__all__ = ["service", "routes"]
