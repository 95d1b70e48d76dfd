"""API v1 routers."""

from products_api.api.v1 import products

__all__ = ["products"]
