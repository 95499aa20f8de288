"""
Storefront Cart Module

This package contains the storefront cart components:
- cart: models, Cart Data Service client, quantity update coordinator
- cart.store: in-memory Cart Data Service
- api: FastAPI routes for the Cart Data Service
- logging / config / errors: shared infrastructure
"""

__version__ = "0.1.0"
