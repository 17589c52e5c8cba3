"""Cart API routes for guests and authenticated accounts"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from storefront.dependencies import (
    Services,
    get_guest_token,
    get_identity,
    get_services,
    remember_guest_token,
)
from storefront.config import Config
from storefront.models import (
    AccountIdentity,
    AddItemRequest,
    Cart,
    RemoveItemRequest,
    SuccessResponse,
    UpdateItemRequest,
)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("", response_model=SuccessResponse[Cart])
def get_cart(
    request: Request,
    response: Response,
    identity: Optional[AccountIdentity] = Depends(get_identity),
    guest_token: Optional[str] = Depends(get_guest_token),
    services: Services = Depends(get_services),
):
    """Get the current cart for the account or guest, creating it if needed"""
    cart = services.cart.resolve(identity, guest_token)
    remember_guest_token(request, response, identity, cart)
    return SuccessResponse(data=cart)


@router.post("/add", response_model=SuccessResponse[Cart])
def add_item(
    body: AddItemRequest,
    request: Request,
    response: Response,
    identity: Optional[AccountIdentity] = Depends(get_identity),
    guest_token: Optional[str] = Depends(get_guest_token),
    services: Services = Depends(get_services),
):
    """Add an item; an existing (product, size) line has its quantity increased"""
    cart = services.cart.add_item(identity, guest_token, body.product_id, body.size, body.quantity)
    remember_guest_token(request, response, identity, cart)
    return SuccessResponse(data=cart, message="Item added to cart")


@router.put("/update", response_model=SuccessResponse[Cart])
def update_item(
    body: UpdateItemRequest,
    identity: Optional[AccountIdentity] = Depends(get_identity),
    guest_token: Optional[str] = Depends(get_guest_token),
    services: Services = Depends(get_services),
):
    """Set the quantity of a cart item"""
    cart = services.cart.update_item(identity, guest_token, body.item_id, body.quantity)
    return SuccessResponse(data=cart, message="Cart updated")


@router.post("/remove", response_model=SuccessResponse[Cart])
def remove_item(
    body: RemoveItemRequest,
    identity: Optional[AccountIdentity] = Depends(get_identity),
    guest_token: Optional[str] = Depends(get_guest_token),
    services: Services = Depends(get_services),
):
    cart = services.cart.remove_item(identity, guest_token, body.item_id)
    return SuccessResponse(data=cart, message="Item removed")


@router.post("/clear", response_model=SuccessResponse[Cart])
def clear_cart(
    request: Request,
    response: Response,
    identity: Optional[AccountIdentity] = Depends(get_identity),
    guest_token: Optional[str] = Depends(get_guest_token),
    services: Services = Depends(get_services),
):
    cart = services.cart.clear_cart(identity, guest_token)
    remember_guest_token(request, response, identity, cart)
    return SuccessResponse(data=cart, message="Cart cleared")


@router.post("/merge", response_model=SuccessResponse[Cart])
def merge_carts(
    request: Request,
    response: Response,
    identity: Optional[AccountIdentity] = Depends(get_identity),
    guest_token: Optional[str] = Depends(get_guest_token),
    services: Services = Depends(get_services),
):
    """Merge the guest cart carried by the request into the account cart"""
    cart = services.cart.merge_guest_cart(identity, guest_token)
    if request.cookies.get(Config.CART_TOKEN_COOKIE):
        response.delete_cookie(Config.CART_TOKEN_COOKIE)
    return SuccessResponse(data=cart, message="Carts merged")
