"""Storefront API: accounts, permissions, carts and checkout."""
