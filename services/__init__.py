# services/__init__.py
"""services package initializer: explicit exports only; no runtime side effects."""

__all__ = ["activity", "auth", "community", "content", "dictionary", "gateway", "languages", "users"]
