"""
Cart service: resolves which cart a request maps to and applies item mutations.
"""
import logging
import uuid
from typing import Optional

from storefront.cart_repository import CartRepository
from storefront.exceptions import NotFoundError, UnauthorizedError, ValidationError
from storefront.middleware import hash_identifier
from storefront.models import AccountIdentity, Cart, CartItem, CartOwner, Size
from storefront.product_repository import ProductRepository

logger = logging.getLogger(__name__)


def mint_cart_token() -> str:
    return str(uuid.uuid4())


def add_line(cart: Cart, product_id: str, size: Size, quantity: int) -> CartItem:
    """Increment the (product, size) line if present, otherwise append a new one"""
    line = cart.find_line(product_id, size)
    if line:
        line.quantity += quantity
        return line
    line = CartItem(id=uuid.uuid4().hex, product_id=product_id, size=size, quantity=quantity)
    cart.items.append(line)
    return line


class CartService:
    """Service for cart operations"""

    def __init__(self, carts: CartRepository, products: ProductRepository):
        self.carts = carts
        self.products = products

    def _owner_for(
        self,
        identity: Optional[AccountIdentity],
        guest_token: Optional[str],
        mint: bool = True,
    ) -> Optional[CartOwner]:
        if identity:
            return CartOwner(account_id=identity.id)
        if not guest_token:
            if not mint:
                return None
            guest_token = mint_cart_token()
        return CartOwner(token=guest_token)

    def _validate_quantity(self, quantity: int) -> None:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

    def resolve(self, identity: Optional[AccountIdentity], guest_token: Optional[str] = None) -> Cart:
        """
        Return the one cart an identity maps to, creating it on first use.

        Accounts map to their account cart and never use a token. Guests map
        to the cart of their token; a token is minted when none is given and
        is carried on the returned cart.
        """
        owner = self._owner_for(identity, guest_token)
        return self.carts.find(owner) or self.carts.create(owner)

    def add_item(
        self,
        identity: Optional[AccountIdentity],
        guest_token: Optional[str],
        product_id: str,
        size: Size,
        quantity: int = 1,
    ) -> Cart:
        """
        Add a product in a size to the cart.

        Adding a (product, size) pair already in the cart increments that
        line's quantity by ``quantity``.

        Raises:
            NotFoundError: If the product does not exist
            ValidationError: If quantity < 1 or the product is not offered in ``size``
        """
        self._validate_quantity(quantity)
        product = self.products.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        size = Size(size)
        if product.sizes and size not in product.sizes:
            raise ValidationError(f"Size {size.value} is not available for {product.name}")

        owner = self._owner_for(identity, guest_token)
        cart = self.carts.mutate(
            owner,
            lambda cart: add_line(cart, product.id, size, quantity),
            create=True,
        )
        logger.info("Added %dx %s (%s) to cart %s", quantity, product.id, size.value, hash_identifier(owner.identifier))
        return cart

    def update_item(
        self,
        identity: Optional[AccountIdentity],
        guest_token: Optional[str],
        item_id: str,
        quantity: int,
    ) -> Cart:
        """
        Set a line item's quantity.

        Raises:
            NotFoundError: If there is no cart, or no item ``item_id`` in it
            ValidationError: If quantity < 1
        """
        self._validate_quantity(quantity)
        owner = self._owner_for(identity, guest_token, mint=False)
        if owner is None:
            raise NotFoundError("Cart not found")

        def _update(cart: Cart) -> None:
            item = cart.find_item(item_id)
            if item is None:
                raise NotFoundError("Cart item not found")
            item.quantity = quantity

        return self.carts.mutate(owner, _update)

    def remove_item(
        self,
        identity: Optional[AccountIdentity],
        guest_token: Optional[str],
        item_id: str,
    ) -> Cart:
        """
        Remove one line item.

        Raises:
            NotFoundError: If there is no cart, or no item ``item_id`` in it
        """
        owner = self._owner_for(identity, guest_token, mint=False)
        if owner is None:
            raise NotFoundError("Cart not found")

        def _remove(cart: Cart) -> None:
            remaining = [item for item in cart.items if item.id != item_id]
            if len(remaining) == len(cart.items):
                raise NotFoundError("Cart item not found")
            cart.items = remaining

        return self.carts.mutate(owner, _remove)

    def clear_cart(self, identity: Optional[AccountIdentity], guest_token: Optional[str] = None) -> Cart:
        """Empty the cart, creating it if it does not exist yet"""
        owner = self._owner_for(identity, guest_token)
        return self.carts.upsert(owner, [])

    def merge_guest_cart(self, identity: Optional[AccountIdentity], guest_token: Optional[str]) -> Cart:
        """
        Fold a guest cart into the account cart after login.

        Guest lines are added with the same (product, size) summing rule as
        ``add_item``; the guest cart is deleted in the same transaction.

        Raises:
            UnauthorizedError: If there is no authenticated identity
        """
        if identity is None:
            raise UnauthorizedError("Login required to merge carts")
        if not guest_token:
            return self.resolve(identity)

        account_owner = CartOwner(account_id=identity.id)
        guest_owner = CartOwner(token=guest_token)

        def _merge(pipe):
            guest = self.carts.read(pipe, guest_owner)
            cart = self.carts.read(pipe, account_owner) or self.carts.new_cart(account_owner)
            if guest:
                for item in guest.items:
                    add_line(cart, item.product_id, item.size, item.quantity)
            pipe.multi()
            if guest:
                self.carts.stage_delete(pipe, guest_owner)
            return self.carts.stage(pipe, cart)

        cart = self.carts.redis.transaction(
            _merge,
            self.carts.key_for(account_owner),
            self.carts.key_for(guest_owner),
            attempts=self.carts.retries,
        )
        logger.info("Merged guest cart %s into cart %s", hash_identifier(guest_owner.identifier), hash_identifier(account_owner.identifier))
        return cart
