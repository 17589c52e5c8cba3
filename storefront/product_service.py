"""
Product service for catalog browsing.
"""
from decimal import Decimal
from typing import Any, Optional

from storefront.exceptions import NotFoundError
from storefront.models import PageMeta, Product, ProductPage
from storefront.pagination import get_meta, get_pagination
from storefront.product_repository import ProductRepository


class ProductService:
    """Service for catalog operations"""

    def __init__(self, products: ProductRepository):
        self.products = products

    def list(
        self,
        page: Any = None,
        limit: Any = None,
        category: Optional[str] = None,
        size: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        search: Optional[str] = None,
    ) -> ProductPage:
        page, limit, skip = get_pagination(page, limit)
        products, total = self.products.list(
            category=category,
            size=size,
            min_price=min_price,
            max_price=max_price,
            search=search,
            skip=skip,
            limit=limit,
        )
        return ProductPage(products=products, meta=PageMeta(**get_meta(total, page, limit)))

    def get_by_id(self, product_id: str) -> Product:
        product = self.products.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product
