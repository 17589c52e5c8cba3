from decimal import Decimal

import pytest

from storefront.checkout_service import CheckoutService
from storefront.exceptions import ConflictError, InvalidStateError, UnauthorizedError
from storefront.models import OrderStatus, ShippingInfo, Size

from tests.conftest import InlineExecutor, RecordingEmailSender


def test_checkout_requires_identity(checkout_service):
    with pytest.raises(UnauthorizedError):
        checkout_service.checkout(None)


def test_checkout_without_cart_fails(checkout_service, account):
    with pytest.raises(InvalidStateError):
        checkout_service.checkout(account)


def test_checkout_empty_cart_fails(checkout_service, cart_service, account):
    cart_service.clear_cart(account)

    with pytest.raises(InvalidStateError):
        checkout_service.checkout(account)


def test_checkout_creates_completed_order_and_empties_cart(checkout_service, cart_service, order_repo, account, catalog):
    cart_service.add_item(account, None, "p1", Size.M, 2)

    order = checkout_service.checkout(account, ShippingInfo(address="1 Main St"))

    assert order.total == Decimal("200")
    assert order.status == OrderStatus.COMPLETED
    assert order.account_id == account.id
    assert order.shipping.address == "1 Main St"
    assert [(i.product_id, i.name, i.price, i.size, i.quantity) for i in order.items] == [
        ("p1", "Classic Tee", Decimal("100"), Size.M, 2)
    ]
    assert cart_service.resolve(account).items == []
    assert [o.id for o in order_repo.list_by_account(account.id)] == [order.id]


def test_order_total_sums_every_line(checkout_service, cart_service, account, catalog):
    cart_service.add_item(account, None, "p1", Size.S, 1)
    cart_service.add_item(account, None, "p2", Size.M, 2)
    cart_service.add_item(account, None, "p3", Size.M, 2)

    order = checkout_service.checkout(account)

    assert order.total == Decimal("100") + Decimal("500") + Decimal("151.00")
    assert order.total == sum(i.price * i.quantity for i in order.items)


def test_order_snapshot_ignores_later_price_changes(checkout_service, cart_service, order_repo, product_repo, account, catalog):
    cart_service.add_item(account, None, "p1", Size.M, 2)
    order = checkout_service.checkout(account)

    product = catalog["p1"].model_copy(update={"price": Decimal("999"), "name": "Renamed Tee"})
    product_repo.create_many([product])

    stored = order_repo.find_by_id(order.id)
    assert stored.items[0].price == Decimal("100")
    assert stored.items[0].name == "Classic Tee"
    assert stored.total == Decimal("200")


def test_checkout_skips_products_missing_from_catalog(checkout_service, cart_service, redis, account, catalog):
    cart_service.add_item(account, None, "p1", Size.M, 1)
    cart_service.add_item(account, None, "p2", Size.M, 1)
    redis.delete("product:p2")

    order = checkout_service.checkout(account)

    assert [i.product_id for i in order.items] == ["p1"]
    assert order.total == Decimal("100")


def test_checkout_with_no_available_products_orders_nothing(checkout_service, cart_service, order_repo, redis, account, catalog):
    cart_service.add_item(account, None, "p1", Size.M, 1)
    redis.delete("product:p1")

    order = checkout_service.checkout(account)

    assert order.items == []
    assert order.total == Decimal("0")
    assert order_repo.find_by_id(order.id) is not None
    assert cart_service.resolve(account).items == []


def test_checkout_sends_confirmation_email(checkout_service, cart_service, mailer, account, catalog):
    cart_service.add_item(account, None, "p1", Size.M, 2)

    order = checkout_service.checkout(account)

    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == account.email
    assert order.id in mailer.sent[0]["subject"]
    assert "Classic Tee" in mailer.sent[0]["html"]


def test_email_failure_does_not_fail_checkout(cart_repo, order_repo, product_repo, cart_service, account, catalog, caplog):
    service = CheckoutService(cart_repo, order_repo, product_repo, RecordingEmailSender(fail=True), InlineExecutor())
    cart_service.add_item(account, None, "p1", Size.M, 1)

    order = service.checkout(account)

    assert order_repo.find_by_id(order.id) is not None
    assert cart_service.resolve(account).items == []
    assert "Failed to send order email" in caplog.text


def test_concurrent_cart_change_fails_checkout(checkout_service, cart_service, order_repo, product_repo, account, catalog, monkeypatch):
    cart_service.add_item(account, None, "p1", Size.M, 1)
    find_by_id = product_repo.find_by_id

    def find_while_cart_changes(product_id):
        # Another request adds to the cart while checkout is pricing items
        monkeypatch.setattr(product_repo, "find_by_id", find_by_id)
        cart_service.add_item(account, None, "p2", Size.M, 1)
        return find_by_id(product_id)

    monkeypatch.setattr(product_repo, "find_by_id", find_while_cart_changes)

    with pytest.raises(ConflictError):
        checkout_service.checkout(account)

    assert order_repo.list_by_account(account.id) == []
    assert [i.product_id for i in cart_service.resolve(account).items] == ["p1", "p2"]


def test_second_checkout_of_same_cart_fails(checkout_service, cart_service, order_repo, account, catalog):
    cart_service.add_item(account, None, "p1", Size.M, 1)
    checkout_service.checkout(account)

    with pytest.raises(InvalidStateError):
        checkout_service.checkout(account)

    assert len(order_repo.list_by_account(account.id)) == 1


def test_list_orders_newest_first(checkout_service, cart_service, account, catalog):
    cart_service.add_item(account, None, "p1", Size.M, 1)
    first = checkout_service.checkout(account)
    cart_service.add_item(account, None, "p2", Size.M, 1)
    second = checkout_service.checkout(account)

    orders = checkout_service.list_by_account(account)

    assert [o.id for o in orders] == [second.id, first.id]


def test_list_orders_requires_identity(checkout_service):
    with pytest.raises(UnauthorizedError):
        checkout_service.list_by_account(None)
