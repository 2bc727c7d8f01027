"""
Core utilities shared across the storefront API.

This package hosts configuration, the error taxonomy, password hashing, the
email adapter and small cross-cutting helpers (rate limiting, URL building).
Services depend on these primitives instead of importing FastAPI or storage
layers directly.
"""
