from dataclasses import dataclass
from typing import Optional
import threading

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from . import config
from .errors import InvalidQueryParameter
from .feed import SourceFeed
from .logger import get_logger
from .query import build_page, build_query
from .schemas import (CategoriesResponse, FacetsResponse, HealthResponse,
                      Product, ProductListResponse)
from .search import ProductIndex, create_client
from .seeder import CatalogSeeder
from .store import CatalogStore, create_pool

logger = get_logger("api")

app = FastAPI(title="Product Catalog Query Service")


@dataclass
class Clients:
    store: CatalogStore
    index: ProductIndex
    seeder: Optional[CatalogSeeder] = None
    seeder_thread: Optional[threading.Thread] = None


def init_clients() -> Clients:
    store = CatalogStore(create_pool, size=config.DB_POOL_SIZE)
    index = ProductIndex(create_client(), config.ES_INDEX)
    return Clients(store=store, index=index)


def close_clients(clients: Clients) -> None:
    if clients.seeder is not None:
        clients.seeder.stop()
        if clients.seeder_thread is not None:
            clients.seeder_thread.join(timeout=5)
    try:
        clients.index.close()
    finally:
        clients.store.close()


@app.on_event("startup")
def startup_event():
    clients = init_clients()
    if config.SEED_ON_STARTUP:
        clients.seeder = CatalogSeeder(clients.store, clients.index, SourceFeed())
        clients.seeder_thread = clients.seeder.start()
    app.state.clients = clients
    logger.info("Catalog service ready on port %d", config.PORT)


@app.on_event("shutdown")
def shutdown_event():
    clients = getattr(app.state, "clients", None)
    if clients is not None:
        close_clients(clients)


def get_store(request: Request) -> CatalogStore:
    return request.app.state.clients.store


def get_index(request: Request) -> ProductIndex:
    return request.app.state.clients.index


def error_response(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


@app.exception_handler(InvalidQueryParameter)
def invalid_parameter_handler(request: Request, exc: InvalidQueryParameter):
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.get("/health", response_model=HealthResponse)
def health(store: CatalogStore = Depends(get_store),
           index: ProductIndex = Depends(get_index)):
    try:
        store.ping()
        index.health()
        count = store.count_products()
    except Exception as e:
        logger.exception("Health check failed")
        return JSONResponse(status_code=500, content={"status": "unhealthy", "error": str(e)})
    return {
        "status": "healthy",
        "mysql": "connected",
        "elasticsearch": "connected",
        "products_count": count,
    }


@app.get("/products/{product_id}", response_model=Product, response_model_exclude_none=True)
def get_product(product_id: str, store: CatalogStore = Depends(get_store)):
    try:
        pid = int(product_id)
    except ValueError:
        return JSONResponse(status_code=404, content={"error": "Product not found"})
    try:
        product = store.get_product_by_id(pid)
    except Exception as e:
        logger.exception("Lookup of product %s failed", product_id)
        return error_response(e)
    if product is None:
        return JSONResponse(status_code=404, content={"error": "Product not found"})
    return product


@app.get("/products", response_model=ProductListResponse, response_model_exclude_none=True)
def list_products(q: Optional[str] = None,
                  category: Optional[str] = None,
                  brand: Optional[str] = None,
                  min_price: Optional[str] = None,
                  max_price: Optional[str] = None,
                  limit: Optional[str] = None,
                  offset: Optional[str] = None,
                  index: ProductIndex = Depends(get_index)):
    query = build_query(q=q, category=category, brand=brand,
                        min_price=min_price, max_price=max_price)
    page = build_page(limit=limit, offset=offset)
    try:
        return index.search_products(query, page)
    except Exception as e:
        logger.exception("Product search failed")
        return error_response(e)


@app.get("/categories", response_model=CategoriesResponse)
def list_categories(index: ProductIndex = Depends(get_index)):
    try:
        return index.list_categories()
    except Exception as e:
        logger.exception("Category listing failed")
        return error_response(e)


# Not /products/aggs: that path would collide with /products/{product_id}
@app.get("/product-aggs", response_model=FacetsResponse, response_model_exclude_none=True)
def product_aggs(q: Optional[str] = None,
                 category: Optional[str] = None,
                 brand: Optional[str] = None,
                 min_price: Optional[str] = None,
                 max_price: Optional[str] = None,
                 index: ProductIndex = Depends(get_index)):
    query = build_query(q=q, category=category, brand=brand,
                        min_price=min_price, max_price=max_price)
    try:
        return index.product_facets(query)
    except Exception as e:
        logger.exception("Facet aggregation failed")
        return error_response(e)


if __name__ == "__main__":
    uvicorn.run("catalog_api.main:app", host=config.HOST, port=config.PORT)
