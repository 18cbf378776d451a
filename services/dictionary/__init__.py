# services/dictionary/__init__.py
"""dictionary services package initializer: explicit exports only; no runtime side effects."""

__all__ = ["service", "routes"]
