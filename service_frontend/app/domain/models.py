"""
CMS resource DTOs and the response envelope they arrive in.
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class CmsModel(BaseModel):
    """Base for everything deserialized from the CMS: immutable, alias-aware."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Pagination(CmsModel):
    page: int = 1
    page_size: int = Field(default=25, alias="pageSize")
    page_count: int = Field(default=0, alias="pageCount")
    total: int = 0


class Meta(CmsModel):
    pagination: Optional[Pagination] = None


class _Envelope(CmsModel):
    meta: Meta = Field(default_factory=Meta)

    @property
    def pagination(self) -> Optional[Pagination]:
        return self.meta.pagination

    @property
    def total(self) -> Optional[int]:
        """``meta.pagination.total`` when the CMS sent it."""
        return self.meta.pagination.total if self.meta.pagination else None


class ResponseEnvelope(_Envelope, Generic[T]):
    """Single-resource envelope: ``{"data": {...}, "meta": {...}}``."""

    data: Optional[T]


class CollectionEnvelope(_Envelope, Generic[T]):
    """Collection envelope: ``{"data": [...], "meta": {"pagination": ...}}``."""

    data: List[T]


class CategoryType(CmsModel):
    id: int
    document_id: Optional[str] = Field(default=None, alias="documentId")
    name: str = ""
    slug: str = ""
    description: Optional[str] = None
    multi_level: bool = False
    enabled: bool = True
    sort_order: Optional[int] = None
    values: Optional[List["CategoryValue"]] = None
    published_at: Optional[datetime] = Field(default=None, alias="publishedAt")


class CategoryValue(CmsModel):
    id: int
    document_id: Optional[str] = Field(default=None, alias="documentId")
    name: str = ""
    slug: str = ""
    enabled: bool = True
    sort_order: Optional[int] = None
    parent: Optional["CategoryValue"] = None
    children: Optional[List["CategoryValue"]] = None
    category_type: Optional[CategoryType] = None
    published_at: Optional[datetime] = Field(default=None, alias="publishedAt")


class ProductContact(CmsModel):
    id: int
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    role: Optional[str] = None


class Product(CmsModel):
    id: int
    document_id: Optional[str] = Field(default=None, alias="documentId")
    fips_id: Optional[str] = None
    title: str = ""
    short_description: str = ""
    long_description: Optional[str] = None
    product_url: Optional[str] = None
    state: str = "New"
    category_values: Optional[List[CategoryValue]] = None
    product_contacts: Optional[List[ProductContact]] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    published_at: Optional[datetime] = Field(default=None, alias="publishedAt")


class ProductInput(CmsModel):
    """Write payload for creating or updating a product."""

    title: str
    short_description: str
    long_description: Optional[str] = None
    product_url: Optional[str] = None
    state: str = "New"
    category_values: List[str] = Field(default_factory=list)


CategoryType.model_rebuild()
