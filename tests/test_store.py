"""Relational store: row mapping and pooled statement execution."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from catalog_api.schemas import Dimensions, ProductMeta
from catalog_api.store import (UPSERT_COLUMNS, UPSERT_PRODUCTS, CatalogStore,
                               create_pool, product_row, row_to_product)


@pytest.fixture
def cursor():
    return MagicMock()


@pytest.fixture
def conn(cursor):
    c = MagicMock()
    c.cursor.return_value.__enter__.return_value = cursor
    return c


@pytest.fixture
def pool(conn):
    p = MagicMock()
    p.getconn.return_value = conn
    return p


@pytest.fixture
def catalog_store(pool):
    return CatalogStore(lambda size: pool, size=2)


def test_row_to_product_rebuilds_nested_fields():
    row = {
        "id": 1,
        "title": "Essence Mascara",
        "price": Decimal("9.99"),
        "discount_percentage": Decimal("7.17"),
        "rating": Decimal("4.94"),
        "stock": 5,
        "brand": None,
        "tags": ["beauty"],
        "dim_width": Decimal("23.17"),
        "dim_height": Decimal("14.43"),
        "dim_depth": Decimal("28.01"),
        "meta": {"barcode": "9164035109868"},
        "reviews": [{"rating": 2, "comment": "Not as described"}],
        "minimum_order_quantity": 24,
    }
    product = row_to_product(row)
    assert product.price == 9.99
    assert product.discountPercentage == 7.17
    assert product.dimensions == Dimensions(width=23.17, height=14.43, depth=28.01)
    assert product.meta == ProductMeta(barcode="9164035109868")
    assert product.reviews[0].comment == "Not as described"
    assert product.minimumOrderQuantity == 24
    assert product.brand is None


def test_row_without_dimensions():
    assert row_to_product({"id": 2, "title": "X"}).dimensions is None


def test_product_row_matches_column_order(make_product):
    product = make_product(7, dimensions={"width": 1.0, "height": 2.0, "depth": 3.0}, brand="")
    row = dict(zip(UPSERT_COLUMNS, product_row(product)))
    assert len(row) == len(UPSERT_COLUMNS)
    assert row["id"] == 7
    assert row["discount_percentage"] == 7.17
    assert row["brand"] is None
    assert row["tags"].adapted == ["beauty", "mascara"]
    assert (row["dim_width"], row["dim_height"], row["dim_depth"]) == (1.0, 2.0, 3.0)
    assert row["meta"] is None


def test_upsert_statement_updates_on_conflict():
    assert "ON CONFLICT (id) DO UPDATE SET" in UPSERT_PRODUCTS
    assert "title = EXCLUDED.title" in UPSERT_PRODUCTS
    assert "id = EXCLUDED.id" not in UPSERT_PRODUCTS


@patch("catalog_api.store.execute_values")
def test_bulk_upsert(mock_execute_values, catalog_store, pool, conn, cursor, products):
    assert catalog_store.bulk_upsert_products(products[:3]) == 3
    sql, rows = mock_execute_values.call_args.args[1:3]
    assert mock_execute_values.call_args.args[0] is cursor
    assert sql == UPSERT_PRODUCTS
    assert [r[0] for r in rows] == [1, 2, 3]
    conn.commit.assert_called_once()
    pool.putconn.assert_called_once_with(conn)


def test_bulk_upsert_skips_empty_batch(catalog_store, pool):
    assert catalog_store.bulk_upsert_products([]) == 0
    pool.getconn.assert_not_called()


def test_count_products(catalog_store, cursor):
    cursor.fetchone.return_value = (194,)
    assert catalog_store.count_products() == 194
    cursor.execute.assert_called_once_with("SELECT COUNT(*) FROM products")


def test_get_product_by_id_missing(catalog_store, cursor):
    cursor.fetchone.return_value = None
    assert catalog_store.get_product_by_id(404) is None
    cursor.execute.assert_called_once_with("SELECT * FROM products WHERE id = %s", (404,))


def test_failed_statement_rolls_back_and_returns_connection(catalog_store, pool, conn, cursor):
    cursor.execute.side_effect = RuntimeError("syntax error")
    with pytest.raises(RuntimeError):
        catalog_store.ping()
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    pool.putconn.assert_called_once_with(conn)


def test_ensure_products_table_creates_indexes(catalog_store, cursor):
    catalog_store.ensure_products_table()
    statements = [c.args[0] for c in cursor.execute.call_args_list]
    assert "CREATE TABLE IF NOT EXISTS products" in statements[0]
    assert len(statements) == 4
    assert all("IF NOT EXISTS" in s for s in statements)


def test_pool_is_not_built_until_first_use(pool):
    factory = MagicMock(return_value=pool)
    store = CatalogStore(factory, size=3)
    factory.assert_not_called()
    store.ping()
    store.ping()
    factory.assert_called_once_with(3)


def test_unreachable_database_fails_the_call_then_recovers(pool, cursor):
    factory = MagicMock(side_effect=[psycopg2.OperationalError("Connection refused"), pool])
    store = CatalogStore(factory, size=2)
    with pytest.raises(psycopg2.OperationalError):
        store.ping()
    assert store.pool is None
    store.ping()
    cursor.execute.assert_called_once_with("SELECT 1")


def test_close_before_first_use_is_a_no_op():
    factory = MagicMock()
    CatalogStore(factory, size=2).close()
    factory.assert_not_called()


@patch("catalog_api.store.ThreadedConnectionPool")
def test_create_pool_keeps_every_connection(mock_pool):
    create_pool(4)
    assert mock_pool.call_args.args == (4, 4)
