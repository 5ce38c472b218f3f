"""Category data model for tasktimer."""

from typing import Optional

from pydantic import Field

from tasktimer.models.base import CamelModel, CamelPatch
from tasktimer.models.constants import DEFAULT_CATEGORY_COLOR, DEFAULT_ORDER


class Category(CamelModel):
    """Named, colored grouping bucket for tasks."""

    id: str = Field(..., description="Unique category identifier (UUID v4)")
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    order: int = DEFAULT_ORDER
    created_at: int
    updated_at: int


class CategoryCreate(CamelPatch):
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    order: int = DEFAULT_ORDER


class CategoryPatch(CamelPatch):
    name: Optional[str] = None
    color: Optional[str] = None
    order: Optional[int] = None
