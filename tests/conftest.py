from concurrent.futures import Executor, Future
from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient

from storefront.cart_repository import CartRepository
from storefront.cart_service import CartService
from storefront.checkout_service import CheckoutService
from storefront.dependencies import build_services
from storefront.main import create_app
from storefront.models import AccountIdentity, Category, Product, Size
from storefront.notifications import EmailSender
from storefront.order_repository import OrderRepository
from storefront.product_repository import ProductRepository
from storefront.redis_client import RedisClient


class InlineExecutor(Executor):
    """Runs submitted work immediately so background dispatch is deterministic"""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class RecordingEmailSender(EmailSender):
    def __init__(self, fail: bool = False):
        super().__init__("shop@example.com")
        self.fail = fail
        self.sent = []

    def deliver(self, to, subject, html_body):
        if self.fail:
            raise ConnectionRefusedError("SMTP server unreachable")
        self.sent.append({"to": to, "subject": subject, "html": html_body})


@pytest.fixture
def redis():
    return RedisClient(client=fakeredis.FakeRedis(decode_responses=True))


@pytest.fixture
def product_repo(redis):
    return ProductRepository(redis)


@pytest.fixture
def catalog(product_repo):
    products = [
        Product(id="p1", name="Classic Tee", description="Cotton t-shirt", price=Decimal("100"),
                category=Category.MEN, sizes=[Size.S, Size.M, Size.L]),
        Product(id="p2", name="Leather Belt", description="Genuine leather belt", price=Decimal("250"),
                category=Category.MEN, sizes=[]),
        Product(id="p3", name="Summer Dress", description="Floral summer dress", price=Decimal("75.50"),
                category=Category.WOMEN, sizes=[Size.S, Size.M]),
    ]
    product_repo.create_many(products)
    return {p.id: p for p in products}


@pytest.fixture
def cart_repo(redis):
    return CartRepository(redis, retries=3)


@pytest.fixture
def order_repo(redis):
    return OrderRepository(redis)


@pytest.fixture
def cart_service(cart_repo, product_repo):
    return CartService(cart_repo, product_repo)


@pytest.fixture
def mailer():
    return RecordingEmailSender()


@pytest.fixture
def checkout_service(cart_repo, order_repo, product_repo, mailer):
    return CheckoutService(cart_repo, order_repo, product_repo, mailer, InlineExecutor())


@pytest.fixture
def account():
    return AccountIdentity(id="acc-1", name="Ada", email="ada@example.com")


@pytest.fixture
def services(redis, mailer, catalog):
    return build_services(redis=redis, notifier=mailer, executor=InlineExecutor())


@pytest.fixture
def client(services):
    return TestClient(create_app(services))
