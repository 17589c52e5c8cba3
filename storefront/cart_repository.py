"""
Cart storage on Redis.

A cart is one JSON document keyed by its owner: ``cart:account:{account_id}``
for account carts and ``cart:guest:{token}`` for guest carts. Every write bumps
the document's ``version``; writes run inside WATCH transactions so a
concurrent change to the same cart is detected instead of silently clobbered.
"""
import uuid
from typing import Any, Callable, Iterable, Optional

from storefront.config import Config
from storefront.exceptions import ConflictError, NotFoundError
from storefront.models import Cart, CartItem, CartOwner, utcnow
from storefront.redis_client import RedisClient


class CartRepository:
    """Cart document store"""

    def __init__(self, redis: RedisClient, retries: Optional[int] = None):
        self.redis = redis
        self.retries = retries or Config.CART_TRANSACTION_RETRIES

    def key_for(self, owner: CartOwner) -> str:
        if owner.account_id:
            return f"cart:account:{owner.account_id}"
        return f"cart:guest:{owner.token}"

    def _load(self, raw: Optional[str]) -> Optional[Cart]:
        return Cart.model_validate_json(raw) if raw else None

    def new_cart(self, owner: CartOwner, items: Iterable[CartItem] = ()) -> Cart:
        return Cart(
            id=uuid.uuid4().hex,
            account_id=owner.account_id,
            token=owner.token,
            items=list(items),
        )

    # Pipeline helpers, used by multi-document transactions

    def read(self, pipe: Any, owner: CartOwner) -> Optional[Cart]:
        """Read a cart on a pipeline that is still in immediate mode"""
        return self._load(pipe.get(self.key_for(owner)))

    def stage(self, pipe: Any, cart: Cart) -> Cart:
        """Queue a versioned write of ``cart`` on a pipeline in MULTI mode"""
        cart.version += 1
        cart.updated_at = utcnow()
        pipe.set(self.key_for(cart.owner), cart.model_dump_json())
        return cart

    def stage_delete(self, pipe: Any, owner: CartOwner) -> None:
        pipe.delete(self.key_for(owner))

    # Store contract

    def find(self, owner: CartOwner) -> Optional[Cart]:
        return self._load(self.redis.get(self.key_for(owner)))

    def find_by_account(self, account_id: str) -> Optional[Cart]:
        return self.find(CartOwner(account_id=account_id))

    def find_by_token(self, token: str) -> Optional[Cart]:
        return self.find(CartOwner(token=token))

    def create(self, owner: CartOwner, items: Iterable[CartItem] = ()) -> Cart:
        """Create a cart unless one already exists for ``owner``; returns the stored cart"""
        cart = self.new_cart(owner, items)
        if self.redis.set(self.key_for(owner), cart.model_dump_json(), nx=True):
            return cart
        # Lost a creation race, the other writer's cart wins
        return self.find(owner)

    def upsert(self, owner: CartOwner, items: Iterable[CartItem]) -> Cart:
        """Replace the cart's items, creating the cart if needed"""
        items = list(items)

        def _upsert(pipe):
            cart = self.read(pipe, owner) or self.new_cart(owner)
            cart.items = list(items)
            pipe.multi()
            return self.stage(pipe, cart)

        return self.redis.transaction(_upsert, self.key_for(owner), attempts=self.retries)

    def save(self, cart: Cart) -> Cart:
        """Write ``cart`` back if nobody else wrote it since it was read"""
        expected_version = cart.version

        def _save(pipe):
            current = self.read(pipe, cart.owner)
            current_version = current.version if current else 0
            if current_version != expected_version:
                raise ConflictError("Cart was modified concurrently, please retry")
            pipe.multi()
            return self.stage(pipe, cart.model_copy(deep=True))

        return self.redis.transaction(_save, self.key_for(cart.owner))

    def mutate(self, owner: CartOwner, mutation: Callable[[Cart], None], create: bool = False) -> Cart:
        """
        Apply ``mutation`` to the stored cart atomically.

        The read, the mutation and the write are re-run together if another
        writer touches the cart in between.

        Raises:
            NotFoundError: If no cart exists and ``create`` is False
            ConflictError: If the cart kept changing for every retry
        """
        def _mutate(pipe):
            cart = self.read(pipe, owner)
            if cart is None:
                if not create:
                    raise NotFoundError("Cart not found")
                cart = self.new_cart(owner)
            mutation(cart)
            pipe.multi()
            return self.stage(pipe, cart)

        return self.redis.transaction(_mutate, self.key_for(owner), attempts=self.retries)

    def delete(self, owner: CartOwner) -> int:
        return self.redis.delete(self.key_for(owner))
