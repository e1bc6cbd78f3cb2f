"""Storefront API: catalog, cart, orders and admin console over a hosted BaaS."""

__version__ = "0.3.0"
