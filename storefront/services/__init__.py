"""
High-level use cases for the storefront API.

Each service module orchestrates repositories/adapters to implement business
rules (sign up, reset a password, add to cart, check out, etc.).

Routers (FastAPI endpoints) call these services instead of manipulating the
database or cookies directly.
"""
