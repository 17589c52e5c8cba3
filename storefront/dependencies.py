"""
Service wiring and FastAPI dependencies.

Collaborators are built once at process start by ``build_services`` and kept on
``app.state.services``; request handlers reach them through the dependency
functions below.
"""
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request, Response

from storefront.account_repository import AccountRepository
from storefront.auth_service import AuthService, IdentityResolver
from storefront.cart_repository import CartRepository
from storefront.cart_service import CartService
from storefront.checkout_service import CheckoutService
from storefront.config import Config
from storefront.models import AccountIdentity, Cart
from storefront.notifications import EmailSender, build_email_sender
from storefront.order_repository import OrderRepository
from storefront.product_repository import ProductRepository
from storefront.product_service import ProductService
from storefront.redis_client import RedisClient


@dataclass
class Services:
    redis: RedisClient
    products: ProductService
    auth: AuthService
    identity: IdentityResolver
    cart: CartService
    checkout: CheckoutService
    executor: Executor

    def close(self) -> None:
        self.executor.shutdown(wait=True)
        self.redis.close()


def build_services(
    redis: Optional[RedisClient] = None,
    notifier: Optional[EmailSender] = None,
    executor: Optional[Executor] = None,
) -> Services:
    redis = redis or RedisClient()
    notifier = notifier or build_email_sender()
    executor = executor or ThreadPoolExecutor(
        max_workers=Config.NOTIFICATION_WORKERS, thread_name_prefix="notifications"
    )

    product_repo = ProductRepository(redis)
    account_repo = AccountRepository(redis)
    cart_repo = CartRepository(redis)
    order_repo = OrderRepository(redis)

    return Services(
        redis=redis,
        products=ProductService(product_repo),
        auth=AuthService(account_repo),
        identity=IdentityResolver(account_repo),
        cart=CartService(cart_repo, product_repo),
        checkout=CheckoutService(cart_repo, order_repo, product_repo, notifier, executor),
        executor=executor,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_identity(request: Request, services: Services = Depends(get_services)) -> Optional[AccountIdentity]:
    """Authenticated account from the Authorization header or token cookie, else None"""
    credential = request.headers.get("Authorization") or request.cookies.get("token")
    return services.identity.resolve(credential)


def get_guest_token(request: Request) -> Optional[str]:
    """Guest cart token; the cookie wins and the header is only read when no cookie is set"""
    return request.cookies.get(Config.CART_TOKEN_COOKIE) or request.headers.get(Config.CART_TOKEN_HEADER) or None


def remember_guest_token(
    request: Request,
    response: Response,
    identity: Optional[AccountIdentity],
    cart: Cart,
) -> None:
    """Set the cartToken cookie for guests that do not carry one yet"""
    if identity or request.cookies.get(Config.CART_TOKEN_COOKIE) or not cart.token:
        return
    response.set_cookie(
        Config.CART_TOKEN_COOKIE,
        cart.token,
        max_age=Config.CART_TOKEN_MAX_AGE_SECONDS,
        httponly=False,
        samesite="lax",
        secure=Config.ENVIRONMENT == "production",
    )
