"""
Order ledger on Redis.

Orders are append-only JSON documents under ``order:{id}``; the sorted set
``orders:account:{account_id}`` indexes an account's orders by creation time.
"""
from typing import Any, List, Optional

from storefront.models import Order
from storefront.redis_client import RedisClient


class OrderRepository:

    def __init__(self, redis: RedisClient):
        self.redis = redis

    def _get_order_key(self, order_id: str) -> str:
        return f"order:{order_id}"

    def _get_account_index_key(self, account_id: str) -> str:
        return f"orders:account:{account_id}"

    def stage(self, pipe: Any, order: Order) -> Order:
        """Queue the order write and its index entry on a pipeline in MULTI mode"""
        pipe.set(self._get_order_key(order.id), order.model_dump_json())
        pipe.zadd(self._get_account_index_key(order.account_id), {order.id: order.created_at.timestamp()})
        return order

    def create(self, order: Order) -> Order:
        self.redis.write_batch(lambda pipe: self.stage(pipe, order))
        return order

    def find_by_id(self, order_id: str) -> Optional[Order]:
        raw = self.redis.get(self._get_order_key(order_id))
        return Order.model_validate_json(raw) if raw else None

    def list_by_account(self, account_id: str) -> List[Order]:
        """All orders of an account, most recent first"""
        order_ids = self.redis.zrevrange(self._get_account_index_key(account_id))
        raw_orders = self.redis.mget([self._get_order_key(oid) for oid in order_ids])
        return [Order.model_validate_json(raw) for raw in raw_orders if raw]
