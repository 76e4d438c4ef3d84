# catalog_api/schemas.py
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Dimensions(BaseModel):
    width: Optional[float] = None
    height: Optional[float] = None
    depth: Optional[float] = None


class ProductMeta(BaseModel):
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    barcode: Optional[str] = None
    qrCode: Optional[str] = None


class ProductReview(BaseModel):
    rating: Optional[float] = None
    comment: Optional[str] = None
    date: Optional[str] = None
    reviewerName: Optional[str] = None
    reviewerEmail: Optional[str] = None


class Product(BaseModel):
    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    discountPercentage: Optional[float] = None
    rating: Optional[float] = None
    stock: Optional[int] = None
    brand: Optional[str] = None
    sku: Optional[str] = None
    thumbnail: Optional[str] = None
    tags: Optional[List[str]] = None
    images: Optional[List[str]] = None
    weight: Optional[int] = None
    dimensions: Optional[Dimensions] = None
    warrantyInformation: Optional[str] = None
    shippingInformation: Optional[str] = None
    availabilityStatus: Optional[str] = None
    returnPolicy: Optional[str] = None
    minimumOrderQuantity: Optional[int] = None
    meta: Optional[ProductMeta] = None
    reviews: Optional[List[ProductReview]] = None


class FeedPage(BaseModel):
    """One page of the upstream product feed."""
    products: List[Product] = []
    total: int = 0
    skip: int = 0
    limit: int = 0


class ProductListResponse(BaseModel):
    total: int
    limit: int
    offset: int
    products: List[Product]


class CategoriesResponse(BaseModel):
    items: List[str]


class Bucket(BaseModel):
    key: str
    count: int


class RangeBucket(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: str
    from_: Optional[float] = Field(None, alias="from")
    to: Optional[float] = None
    count: int


class Facets(BaseModel):
    category: List[Bucket] = []
    brand: List[Bucket] = []
    price: List[RangeBucket] = []
    rating: List[RangeBucket] = []


class FacetsResponse(BaseModel):
    facets: Facets


class HealthResponse(BaseModel):
    status: str
    mysql: str
    elasticsearch: str
    products_count: int
