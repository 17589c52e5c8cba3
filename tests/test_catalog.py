from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.exceptions import NotFoundError
from storefront.models import Category, Product, Size, utcnow
from storefront.pagination import get_meta, get_pagination, matches_search, search_score, search_terms
from storefront.product_service import ProductService
from storefront.seed import SEED_PRODUCTS, seed


@pytest.fixture
def product_service(product_repo):
    return ProductService(product_repo)


@pytest.fixture
def seeded(product_repo):
    return seed(product_repo)


@pytest.mark.parametrize("page, limit, expected", [
    (None, None, (1, 10, 0)),
    (3, 20, (3, 20, 40)),
    (0, 0, (1, 1, 0)),
    ("2", "500", (2, 100, 100)),
    ("abc", "xyz", (1, 10, 0)),
])
def test_get_pagination(page, limit, expected):
    assert get_pagination(page, limit) == expected


def test_get_meta_rounds_pages_up():
    assert get_meta(21, 2, 10) == {"total": 21, "page": 2, "limit": 10, "totalPages": 3}
    assert get_meta(0, 1, 10)["totalPages"] == 0


def test_matches_search_accepts_any_term():
    terms = search_terms("  Denim   JACKET ")

    assert terms == ["denim", "jacket"]
    assert matches_search(terms, ["Blue Denim Jacket", None])
    assert matches_search(terms, ["Denim Skirt", "Classic denim skirt."])
    assert not matches_search(terms, ["Wool Scarf", "Warm scarf"])
    assert search_score(terms, ["Blue Denim Jacket"]) == 2


def test_find_by_id(product_repo, catalog):
    assert product_repo.find_by_id("p1").name == "Classic Tee"
    assert product_repo.find_by_id("nope") is None


def test_get_by_id_unknown_raises(product_service):
    with pytest.raises(NotFoundError):
        product_service.get_by_id("nope")


def test_list_is_newest_first_with_meta(product_service, seeded):
    page = product_service.list(page=1, limit=5)

    assert [p.name for p in page.products] == [row[0] for row in SEED_PRODUCTS[:5]]
    assert page.meta.total == len(SEED_PRODUCTS)
    assert page.meta.total_pages == 4


def test_list_second_page(product_service, seeded):
    page = product_service.list(page=4, limit=6)

    assert [p.name for p in page.products] == [row[0] for row in SEED_PRODUCTS[18:]]


def test_list_filters_combine(product_service, seeded):
    page = product_service.list(category="Women", size="XL", limit=50)

    assert [p.name for p in page.products] == ["Puffer Jacket"]


def test_list_price_range(product_service, seeded):
    page = product_service.list(min_price=Decimal("2000"), max_price=Decimal("3000"), limit=50)

    assert sorted(p.name for p in page.products) == ["Blue Denim Jacket", "Red Cocktail Dress", "Women's Blazer"]


def test_search_ranks_name_matches_first(product_repo, product_service):
    now = utcnow()
    product_repo.create_many([
        Product(id="a", name="Summer Hat", description="Straw hat for the denim look",
                price=Decimal("10"), category=Category.MEN, created_at=now),
        Product(id="b", name="Denim Jacket", description="Blue jacket",
                price=Decimal("20"), category=Category.MEN, created_at=now - timedelta(days=1)),
        Product(id="c", name="Wool Scarf", description="Warm scarf",
                price=Decimal("5"), category=Category.KIDS, sizes=[Size.S], created_at=now),
    ])

    page = product_service.list(search="denim")

    assert [p.id for p in page.products] == ["b", "a"]
    assert page.meta.total == 2

    page = product_service.list(search="denim hat")

    assert [p.id for p in page.products] == ["a", "b"]


def test_seed_replaces_catalog(product_repo, catalog):
    seed(product_repo)

    assert product_repo.find_by_id("p1") is None
    _, total = product_repo.list(limit=100)
    assert total == len(SEED_PRODUCTS)
