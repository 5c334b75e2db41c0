"""
Storefront Django persistence adapter.
ORM-backed catalog, stock and order stores.
"""
