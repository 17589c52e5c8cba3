"""
Seed the catalog with the bundled clothing products.

Usage:
    python -m storefront.seed            # replace the catalog
    python -m storefront.seed --keep     # add without clearing
"""
import argparse
import logging
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import List

from storefront.config import Config
from storefront.middleware import configure_logging
from storefront.models import Category, Product, Size, utcnow
from storefront.product_repository import ProductRepository
from storefront.redis_client import RedisClient

logger = logging.getLogger(__name__)

ALL = ["S", "M", "L", "XL"]

# name, description, price, category, sizes
SEED_PRODUCTS = [
    ("Classic White T-Shirt", "Premium cotton t-shirt, comfortable & breathable.", 399, "Men", ALL),
    ("Blue Denim Jacket", "Stylish denim jacket for everyday wear.", 2499, "Men", ["M", "L", "XL"]),
    ("Slim Fit Jeans", "Comfort stretch slim-fit jeans.", 1799, "Men", ["M", "L", "XL"]),
    ("Floral Summer Dress", "Lightweight summer dress with floral pattern.", 1599, "Women", ["S", "M", "L"]),
    ("Black Hoodie", "Cozy hoodie with fleece lining.", 1299, "Men", ALL),
    ("Red Cocktail Dress", "Elegant cocktail dress for special occasions.", 2999, "Women", ["S", "M", "L"]),
    ("Kids Graphic Tee", "Fun graphic tee for kids.", 499, "Kids", ["S", "M"]),
    ("Running Shorts", "Lightweight running shorts with pockets.", 799, "Men", ["M", "L", "XL"]),
    ("Women's Blazer", "Tailored blazer for sleek office look.", 2299, "Women", ["S", "M", "L"]),
    ("Casual Sneakers", "Comfortable sneakers for daily wear.", 3499, "Men", ["M", "L", "XL"]),
    ("Striped Polo", "Classic striped polo shirt.", 699, "Men", ["S", "M", "L"]),
    ("High-Waist Leggings", "Stretchable leggings with snug fit.", 899, "Women", ["S", "M", "L"]),
    ("Plaid Shirt", "Casual plaid shirt with button-down collar.", 699, "Men", ["M", "L", "XL"]),
    ("Kids Hoodie", "Warm hoodie for kids.", 799, "Kids", ["S", "M"]),
    ("Leather Belt", "Genuine leather belt.", 499, "Men", []),
    ("Maxi Skirt", "Flowy maxi skirt for summer.", 1099, "Women", ["S", "M", "L"]),
    ("Puffer Jacket", "Insulated jacket for cold weather.", 3999, "Women", ["M", "L", "XL"]),
    ("Cargo Trousers", "Utility cargo trousers.", 1799, "Men", ["M", "L"]),
    ("Denim Skirt", "Classic denim skirt.", 1199, "Women", ["S", "M", "L"]),
    ("Kids Shorts", "Comfort shorts for kids.", 399, "Kids", ["S", "M"]),
]


def build_seed_products() -> List[Product]:
    # Spread creation times so "newest first" follows the list order
    now = utcnow()
    return [
        Product(
            id=uuid.uuid4().hex,
            name=name,
            description=description,
            price=Decimal(price),
            category=Category(category),
            sizes=[Size(s) for s in sizes],
            created_at=now - timedelta(seconds=index),
        )
        for index, (name, description, price, category, sizes) in enumerate(SEED_PRODUCTS)
    ]


def seed(repository: ProductRepository, clear: bool = True) -> List[Product]:
    if clear:
        repository.delete_all()
    return repository.create_many(build_seed_products())


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the storefront catalog")
    parser.add_argument("--keep", action="store_true", help="Do not clear existing products first")
    args = parser.parse_args()

    configure_logging()
    Config.load_secrets()
    redis = RedisClient()
    try:
        inserted = seed(ProductRepository(redis), clear=not args.keep)
        logger.info("Inserted products: %d", len(inserted))
    finally:
        redis.close()


if __name__ == "__main__":
    main()
