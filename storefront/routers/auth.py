"""Registration and login routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Response

from storefront.config import Config
from storefront.dependencies import Services, get_guest_token, get_services
from storefront.models import (
    AccountIdentity,
    LoginRequest,
    LoginResult,
    RegisterRequest,
    SuccessResponse,
)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", status_code=201, response_model=SuccessResponse[AccountIdentity])
def register(body: RegisterRequest, services: Services = Depends(get_services)):
    user = services.auth.register(body.name, body.email, body.password, body.role)
    return SuccessResponse(data=user)


@router.post("/login", response_model=SuccessResponse[LoginResult])
def login(
    body: LoginRequest,
    response: Response,
    guest_token: Optional[str] = Depends(get_guest_token),
    services: Services = Depends(get_services),
):
    """Issue a JWT, set it as a cookie and fold any guest cart into the account cart"""
    result = services.auth.login(body.email, body.password)
    response.set_cookie("token", result.token, httponly=True, max_age=Config.JWT_EXPIRES_MINUTES * 60)

    if guest_token:
        services.cart.merge_guest_cart(result.user, guest_token)
        response.delete_cookie(Config.CART_TOKEN_COOKIE)

    return SuccessResponse(data=result)
