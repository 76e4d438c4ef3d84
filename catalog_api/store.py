"""
Relational catalog store.

Products live in a single `products` table on a Postgres-compatible database
(PostgreSQL or CockroachDB). Connections come from a fixed-size pool; callers
beyond its capacity wait for a free connection instead of failing.
"""
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from psycopg2.extras import Json, RealDictCursor, execute_values
from psycopg2.pool import ThreadedConnectionPool

from . import config
from .logger import get_logger
from .schemas import Product

logger = get_logger("store")

CREATE_PRODUCTS_TABLE = """
CREATE TABLE IF NOT EXISTS products (
    id INT PRIMARY KEY,
    title VARCHAR(255) NOT NULL,
    description TEXT,
    category VARCHAR(100),
    price DECIMAL(10, 2),
    discount_percentage DECIMAL(5, 2),
    rating DECIMAL(3, 2),
    stock INT,
    brand VARCHAR(100),
    sku VARCHAR(100),
    thumbnail TEXT,
    tags JSONB NULL,
    images JSONB NULL,
    weight INT NULL,
    dim_width DECIMAL(10, 2) NULL,
    dim_height DECIMAL(10, 2) NULL,
    dim_depth DECIMAL(10, 2) NULL,
    warranty_information VARCHAR(255) NULL,
    shipping_information VARCHAR(255) NULL,
    availability_status VARCHAR(100) NULL,
    return_policy VARCHAR(255) NULL,
    minimum_order_quantity INT NULL,
    meta JSONB NULL,
    reviews JSONB NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

CREATE_PRODUCT_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_products_category ON products (category)",
    "CREATE INDEX IF NOT EXISTS idx_products_brand ON products (brand)",
    "CREATE INDEX IF NOT EXISTS idx_products_price ON products (price)",
]

UPSERT_COLUMNS = [
    "id", "title", "description", "category", "price", "discount_percentage",
    "rating", "stock", "brand", "sku", "thumbnail", "tags", "images", "weight",
    "dim_width", "dim_height", "dim_depth", "warranty_information",
    "shipping_information", "availability_status", "return_policy",
    "minimum_order_quantity", "meta", "reviews",
]

UPSERT_PRODUCTS = (
    f"INSERT INTO products ({', '.join(UPSERT_COLUMNS)}) VALUES %s "
    "ON CONFLICT (id) DO UPDATE SET "
    + ", ".join(f"{c} = EXCLUDED.{c}" for c in UPSERT_COLUMNS if c != "id")
    + ", updated_at = CURRENT_TIMESTAMP"
)


def product_row(p: Product) -> tuple:
    """Flatten a Product into the column order of UPSERT_COLUMNS."""
    dims = p.dimensions
    return (
        p.id,
        p.title,
        p.description,
        p.category,
        p.price,
        p.discountPercentage,
        p.rating,
        p.stock,
        p.brand or None,
        p.sku,
        p.thumbnail,
        Json(p.tags) if p.tags is not None else None,
        Json(p.images) if p.images is not None else None,
        p.weight,
        dims.width if dims else None,
        dims.height if dims else None,
        dims.depth if dims else None,
        p.warrantyInformation or None,
        p.shippingInformation or None,
        p.availabilityStatus or None,
        p.returnPolicy or None,
        p.minimumOrderQuantity,
        Json(p.meta.model_dump()) if p.meta is not None else None,
        Json([r.model_dump() for r in p.reviews]) if p.reviews is not None else None,
    )


def _num(value):
    if isinstance(value, Decimal):
        return float(value)
    return value


def row_to_product(row: Dict) -> Product:
    """Map a products table row back into the Product shape."""
    dims = None
    if any(row.get(c) is not None for c in ("dim_width", "dim_height", "dim_depth")):
        dims = {
            "width": _num(row.get("dim_width")),
            "height": _num(row.get("dim_height")),
            "depth": _num(row.get("dim_depth")),
        }
    return Product(
        id=row["id"],
        title=row.get("title"),
        description=row.get("description"),
        category=row.get("category"),
        price=_num(row.get("price")),
        discountPercentage=_num(row.get("discount_percentage")),
        rating=_num(row.get("rating")),
        stock=row.get("stock"),
        brand=row.get("brand"),
        sku=row.get("sku"),
        thumbnail=row.get("thumbnail"),
        tags=row.get("tags"),
        images=row.get("images"),
        weight=row.get("weight"),
        dimensions=dims,
        warrantyInformation=row.get("warranty_information"),
        shippingInformation=row.get("shipping_information"),
        availabilityStatus=row.get("availability_status"),
        returnPolicy=row.get("return_policy"),
        minimumOrderQuantity=row.get("minimum_order_quantity"),
        meta=row.get("meta"),
        reviews=row.get("reviews"),
    )


def create_pool(size: int = config.DB_POOL_SIZE) -> ThreadedConnectionPool:
    # minconn == maxconn so returned connections stay in the pool
    return ThreadedConnectionPool(
        size, size,
        host=config.DB_HOST,
        port=config.DB_PORT,
        user=config.DB_USER,
        password=config.DB_PASSWORD,
        dbname=config.DB_NAME,
    )


class CatalogStore:
    """
    Products table access over a pooled psycopg2 connection set.

    The pool is built on first use, so an unreachable database surfaces as an
    error from the call that needed it rather than at construction.
    """

    def __init__(self, pool_factory: Callable[[int], ThreadedConnectionPool] = create_pool,
                 size: int = config.DB_POOL_SIZE):
        self.pool_factory = pool_factory
        self.size = size
        self.pool: Optional[ThreadedConnectionPool] = None
        self._pool_lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(size)

    def _get_pool(self) -> ThreadedConnectionPool:
        with self._pool_lock:
            if self.pool is None:
                self.pool = self.pool_factory(self.size)
                logger.info("Database connection pool opened (%d connections)", self.size)
            return self.pool

    @contextmanager
    def connection(self):
        """Borrow a connection; commits on success, rolls back on error."""
        with self._slots:
            pool = self._get_pool()
            conn = pool.getconn()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                pool.putconn(conn)

    def close(self) -> None:
        with self._pool_lock:
            if self.pool is not None:
                self.pool.closeall()
                self.pool = None

    def ping(self) -> None:
        with self.connection() as conn, conn.cursor() as cur:
            cur.execute("SELECT 1")

    def ensure_products_table(self) -> None:
        with self.connection() as conn, conn.cursor() as cur:
            cur.execute(CREATE_PRODUCTS_TABLE)
            for stmt in CREATE_PRODUCT_INDEXES:
                cur.execute(stmt)

    def count_products(self) -> int:
        with self.connection() as conn, conn.cursor() as cur:
            cur.execute("SELECT COUNT(*) FROM products")
            row = cur.fetchone()
        return int(row[0]) if row else 0

    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        with self.connection() as conn, conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("SELECT * FROM products WHERE id = %s", (product_id,))
            row = cur.fetchone()
        if not row:
            return None
        return row_to_product(row)

    def bulk_upsert_products(self, batch: Sequence[Product]) -> int:
        """Insert-or-update a batch keyed by id. Returns the number of rows sent."""
        if not batch:
            return 0
        rows: List[tuple] = [product_row(p) for p in batch]
        with self.connection() as conn, conn.cursor() as cur:
            execute_values(cur, UPSERT_PRODUCTS, rows, page_size=len(rows))
        logger.debug("Upserted %d products", len(rows))
        return len(rows)
