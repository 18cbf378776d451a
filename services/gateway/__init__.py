# services/gateway/__init__.py
"""gateway services package initializer: explicit exports only; no runtime side effects."""

__all__ = ["app"]
