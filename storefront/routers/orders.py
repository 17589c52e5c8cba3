"""Checkout and order history routes"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from storefront.dependencies import Services, get_identity, get_services
from storefront.models import AccountIdentity, CheckoutRequest, Order, SuccessResponse

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("/checkout", status_code=201, response_model=SuccessResponse[Order])
def checkout(
    body: Optional[CheckoutRequest] = None,
    identity: Optional[AccountIdentity] = Depends(get_identity),
    services: Services = Depends(get_services),
):
    """Create an order from the account cart and email a receipt (requires auth)"""
    shipping = body.shipping if body else None
    order = services.checkout.checkout(identity, shipping)
    return SuccessResponse(data=order, message="Order placed successfully")


@router.get("", response_model=SuccessResponse[List[Order]])
def list_orders(
    identity: Optional[AccountIdentity] = Depends(get_identity),
    services: Services = Depends(get_services),
):
    """List orders of the authenticated account, newest first"""
    return SuccessResponse(data=services.checkout.list_by_account(identity))
