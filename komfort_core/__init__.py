# =============================================================================
# komfort_core/__init__.py
# Komfort storefront data layer
# =============================================================================
"""
Catalog data layer for the Komfort furniture storefront: categories,
products, shops, homepage slides and company contacts, kept in Supabase
and mirrored to a local SQLite store.

Entry point: komfort_core.services.get_registry()
"""

__version__ = "1.0.0"
