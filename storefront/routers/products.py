"""Catalog routes"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.dependencies import Services, get_services
from storefront.models import Category, Product, ProductPage, Size, SuccessResponse

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("", response_model=SuccessResponse[ProductPage])
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: Optional[Category] = None,
    size: Optional[Size] = None,
    min_price: Optional[Decimal] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", ge=0),
    search: Optional[str] = None,
    services: Services = Depends(get_services),
):
    """List products with filters, text search and pagination"""
    result = services.products.list(
        page=page,
        limit=limit,
        category=category.value if category else None,
        size=size.value if size else None,
        min_price=min_price,
        max_price=max_price,
        search=search,
    )
    return SuccessResponse(data=result)


@router.get("/{product_id}", response_model=SuccessResponse[Product])
def get_product(product_id: str, services: Services = Depends(get_services)):
    return SuccessResponse(data=services.products.get_by_id(product_id))
