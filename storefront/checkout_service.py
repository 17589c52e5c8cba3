"""
Checkout service: turns an account cart into an order and lists past orders.
"""
import logging
import uuid
from concurrent.futures import Executor, Future
from decimal import Decimal
from typing import List, Optional

from storefront.cart_repository import CartRepository
from storefront.exceptions import InvalidStateError, UnauthorizedError
from storefront.middleware import hash_identifier
from storefront.models import (
    AccountIdentity,
    CartOwner,
    Order,
    OrderItem,
    OrderStatus,
    ShippingInfo,
)
from storefront.notifications import EmailSender
from storefront.order_repository import OrderRepository
from storefront.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class CheckoutService:
    """Service for checkout operations"""

    def __init__(
        self,
        carts: CartRepository,
        orders: OrderRepository,
        products: ProductRepository,
        notifier: EmailSender,
        executor: Executor,
    ):
        self.carts = carts
        self.orders = orders
        self.products = products
        self.notifier = notifier
        self.executor = executor

    def checkout(self, identity: Optional[AccountIdentity], shipping: Optional[ShippingInfo] = None) -> Order:
        """
        Checkout the account cart:
        1. Read the account cart (must have items)
        2. Snapshot name and price of every product still in the catalog;
           lines whose product is gone are skipped
        3. Create the order with status Completed
        4. Reset the cart to empty
        5. Send the confirmation email in the background

        Steps 1-4 run in one transaction watching the cart, so a concurrent
        change to the cart (including a second checkout) fails this one with
        ConflictError instead of ordering the same contents twice.

        Raises:
            UnauthorizedError: Without an authenticated identity
            InvalidStateError: If the cart is missing or empty
            ConflictError: If the cart changed while checking out
        """
        if identity is None:
            raise UnauthorizedError("Login required for checkout")

        owner = CartOwner(account_id=identity.id)

        def _checkout(pipe):
            cart = self.carts.read(pipe, owner)
            if cart is None or not cart.items:
                raise InvalidStateError("Cart is empty")

            items: List[OrderItem] = []
            total = Decimal("0")
            for line in cart.items:
                product = self.products.find_by_id(line.product_id)
                if product is None:
                    logger.warning("Skipping product %s no longer in catalog", line.product_id)
                    continue
                items.append(OrderItem(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    size=line.size,
                    quantity=line.quantity,
                ))
                total += product.price * line.quantity

            order = Order(
                id=uuid.uuid4().hex,
                account_id=identity.id,
                items=items,
                total=total,
                status=OrderStatus.COMPLETED,
                shipping=shipping,
            )
            pipe.multi()
            self.orders.stage(pipe, order)
            cart.items = []
            self.carts.stage(pipe, cart)
            return order

        order = self.carts.redis.transaction(_checkout, self.carts.key_for(owner), attempts=1)
        logger.info(
            "Order created: %s, account %s, total %s",
            order.id, hash_identifier(identity.id), order.total,
        )

        self._dispatch_confirmation(identity.email, order)
        return order

    def _dispatch_confirmation(self, email: str, order: Order) -> None:
        """Hand the confirmation email to the worker pool without waiting for it"""
        try:
            future = self.executor.submit(self.notifier.send_order_confirmation, email, order)
        except RuntimeError as e:
            logger.warning("Could not schedule order email for order_id=%s: %s", order.id, e)
            return

        def _log_failure(done: Future) -> None:
            exc = done.exception()
            if exc is not None:
                logger.warning("Failed to send order email for order_id=%s: %s", order.id, exc)

        future.add_done_callback(_log_failure)

    def list_by_account(self, identity: Optional[AccountIdentity]) -> List[Order]:
        """Orders of the account, most recent first"""
        if identity is None:
            raise UnauthorizedError()
        return self.orders.list_by_account(identity.id)
