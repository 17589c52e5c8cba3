import pytest

from storefront.exceptions import ConflictError, NotFoundError
from storefront.models import CartItem, CartOwner, Size

GUEST = CartOwner(token="guest-token")


def test_owner_requires_exactly_one_identity():
    with pytest.raises(ValueError):
        CartOwner()
    with pytest.raises(ValueError):
        CartOwner(account_id="a", token="t")


def test_create_returns_existing_cart_instead_of_overwriting(cart_repo):
    first = cart_repo.create(GUEST)
    second = cart_repo.create(GUEST)

    assert second.id == first.id


def test_upsert_replaces_items_and_bumps_version(cart_repo):
    item = CartItem(id="i1", product_id="p1", size=Size.M, quantity=2)
    cart = cart_repo.upsert(GUEST, [item])

    assert cart.items == [item]
    assert cart.version == 1

    cart = cart_repo.upsert(GUEST, [])
    assert cart.items == []
    assert cart.version == 2


def test_save_rejects_stale_cart(cart_repo):
    cart = cart_repo.upsert(GUEST, [])
    stale = cart.model_copy(deep=True)

    cart.items.append(CartItem(id="i1", product_id="p1", size=Size.S, quantity=1))
    saved = cart_repo.save(cart)
    assert saved.version == cart.version + 1

    stale.items.append(CartItem(id="i2", product_id="p2", size=Size.S, quantity=1))
    with pytest.raises(ConflictError):
        cart_repo.save(stale)

    assert [i.id for i in cart_repo.find(GUEST).items] == ["i1"]


def test_mutate_missing_cart_raises_unless_create(cart_repo):
    with pytest.raises(NotFoundError):
        cart_repo.mutate(GUEST, lambda cart: None)

    cart = cart_repo.mutate(GUEST, lambda cart: None, create=True)
    assert cart.token == GUEST.token


def test_mutate_reruns_on_concurrent_write(cart_repo, redis):
    cart_repo.upsert(GUEST, [])
    calls = []

    def add_line(cart):
        calls.append(len(cart.items))
        if len(calls) == 1:
            # Another request appends a line between our read and our write
            concurrent = cart.model_copy(deep=True)
            concurrent.items.append(CartItem(id="other", product_id="p2", size=Size.L, quantity=1))
            concurrent.version += 1
            redis.client.set(cart_repo.key_for(GUEST), concurrent.model_dump_json())
        cart.items.append(CartItem(id="mine", product_id="p1", size=Size.M, quantity=1))

    cart = cart_repo.mutate(GUEST, add_line)

    assert calls == [0, 1]
    assert [i.id for i in cart.items] == ["other", "mine"]
    assert [i.id for i in cart_repo.find(GUEST).items] == ["other", "mine"]


def test_mutate_gives_up_with_conflict(cart_repo, redis):
    cart_repo.upsert(GUEST, [])

    def always_raced(cart):
        redis.client.set(cart_repo.key_for(GUEST), cart.model_dump_json())

    with pytest.raises(ConflictError):
        cart_repo.mutate(GUEST, always_raced)
