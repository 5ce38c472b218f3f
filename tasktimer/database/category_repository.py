"""Repository for Category records in the key-value store."""

import logging
from typing import Any, Callable, List, Mapping, Optional, Union

from tasktimer.database.kv_store import SqlKeyValueStore
from tasktimer.engine.timekeeping import now_ms
from tasktimer.engine.validation import parse_payload, validate_category
from tasktimer.errors import NotFoundError, ValidationError
from tasktimer.models.category import Category, CategoryCreate, CategoryPatch
from tasktimer.models.constants import ALL_CATEGORIES_KEY, category_key
from tasktimer.models.factory import create_category_base

logger = logging.getLogger(__name__)


class CategoryRepository:
    """Repository for Category store operations.

    Knows nothing about tasks: deleting a category leaves task references for
    the caller to clear (see `TaskRepository.clear_category`).
    """

    def __init__(self, store: SqlKeyValueStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    def create(self, data: Union[CategoryCreate, Mapping[str, Any]]) -> Category:
        payload = parse_payload(CategoryCreate, data)
        errors = validate_category(payload.model_dump())
        if errors:
            raise ValidationError(errors)

        category = create_category_base(payload, self.clock())
        with self.store.batch():
            self.store.set(category_key(category.id), category.to_record())
            self.store.add_to_set(ALL_CATEGORIES_KEY, category.id)
        logger.debug(f"Created category {category.id}: {category.name[:50]}")
        return category

    def get(self, category_id: str) -> Optional[Category]:
        record = self.store.get(category_key(category_id))
        return Category.model_validate(record) if record else None

    def get_all(self) -> List[Category]:
        category_ids = self.store.list_set(ALL_CATEGORIES_KEY)
        records = self.store.get_many([category_key(category_id) for category_id in category_ids])
        return [
            Category.model_validate(records[category_key(category_id)])
            for category_id in category_ids
            if category_key(category_id) in records
        ]

    def update(self, category_id: str, data: Union[CategoryPatch, Mapping[str, Any]]) -> Category:
        """Merge a partial update over an existing category."""
        patch = parse_payload(CategoryPatch, data)
        changes = patch.model_dump(exclude_unset=True)
        errors = validate_category(changes, partial=True)
        if errors:
            raise ValidationError(errors)

        existing = self.get(category_id)
        if existing is None:
            raise NotFoundError("Category", category_id)

        updated = parse_payload(Category, {
            **existing.model_dump(),
            **changes,
            "updated_at": self.clock(),
        })
        self.store.set(category_key(category_id), updated.to_record())
        logger.debug(f"Updated category {category_id}: {sorted(changes)}")
        return updated

    def delete(self, category_id: str) -> bool:
        """Delete a category and its index entry. Returns False if it did not exist."""
        existed = self.store.get(category_key(category_id)) is not None
        with self.store.batch():
            self.store.delete(category_key(category_id))
            self.store.remove_from_set(ALL_CATEGORIES_KEY, category_id)
        if existed:
            logger.debug(f"Deleted category {category_id}")
        return existed
