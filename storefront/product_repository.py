"""
Product catalog storage on Redis.

Each product is a JSON document under ``product:{id}``; the sorted set
``products:index`` holds every product id scored by creation time.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from pydantic import ValidationError as ModelValidationError

from storefront.models import Product
from storefront.pagination import matches_search, search_score, search_terms
from storefront.redis_client import RedisClient

logger = logging.getLogger(__name__)

INDEX_KEY = "products:index"


class ProductRepository:
    """Catalog lookups and listing"""

    def __init__(self, redis: RedisClient):
        self.redis = redis

    def _get_product_key(self, product_id: str) -> str:
        return f"product:{product_id}"

    def _parse(self, raw: Optional[str]) -> Optional[Product]:
        if raw is None:
            return None
        try:
            return Product.model_validate_json(raw)
        except ModelValidationError as e:
            logger.warning("Skipping unreadable product document: %s", e)
            return None

    def find_by_id(self, product_id: str) -> Optional[Product]:
        return self._parse(self.redis.get(self._get_product_key(product_id)))

    def create_many(self, products: Iterable[Product]) -> List[Product]:
        products = list(products)

        def _queue(pipe):
            for product in products:
                pipe.set(self._get_product_key(product.id), product.model_dump_json())
                pipe.zadd(INDEX_KEY, {product.id: product.created_at.timestamp()})

        if products:
            self.redis.write_batch(_queue)
        return products

    def delete_all(self) -> int:
        ids = self.redis.zrevrange(INDEX_KEY)
        keys = [self._get_product_key(pid) for pid in ids]
        return self.redis.delete(INDEX_KEY, *keys)

    def list(
        self,
        category: Optional[str] = None,
        size: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Product], int]:
        """
        Filter, search and paginate the catalog.

        Returns:
            Tuple of (products on the requested page, total matching products)
        """
        ids = self.redis.zrevrange(INDEX_KEY)
        raw_docs = self.redis.mget([self._get_product_key(pid) for pid in ids])
        terms = search_terms(search)

        matched = []
        for product in filter(None, (self._parse(raw) for raw in raw_docs)):
            if category and product.category.value != category:
                continue
            if size and size not in [s.value for s in product.sizes]:
                continue
            if min_price is not None and product.price < min_price:
                continue
            if max_price is not None and product.price > max_price:
                continue
            if terms and not matches_search(terms, (product.name, product.description)):
                continue
            matched.append(product)

        if terms:
            # Name hits rank above description hits; the stable sort keeps
            # newest-first among equally relevant products
            matched.sort(
                key=lambda p: (search_score(terms, [p.name]), search_score(terms, [p.name, p.description])),
                reverse=True,
            )

        return matched[skip:skip + limit], len(matched)
