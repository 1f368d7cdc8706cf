"""Resume sections: validation and CRUD on top of a ResumeStore."""

from typing import Any, Dict, Type

from loguru import logger
from pydantic import ValidationError as ModelValidationError

from exceptions import NotFoundError, ValidationError
from schemas import SECTIONS, Resume, ResumeItem
from storage import ResumeStore
from text import utcnow

# Assigned by the service or the store, never taken from a request
PROTECTED_FIELDS = ("id", "date_added", "date_updated")


def section_kind(section: str) -> Type[ResumeItem]:
    kind = SECTIONS.get(section or "")
    if kind is None:
        raise ValidationError(
            f"Invalid section, expected one of: {', '.join(SECTIONS)}", fields=["section"]
        )
    return kind


def _field_names(kind: Type[ResumeItem], values: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase keys to field names; unknown keys are dropped."""
    by_alias = {field.alias or name: name for name, field in kind.model_fields.items()}
    normalized = {}
    for key, value in values.items():
        name = key if key in kind.model_fields else by_alias.get(key)
        if name and name not in PROTECTED_FIELDS:
            normalized[name] = value
    return normalized


def _validate(kind: Type[ResumeItem], values: Dict[str, Any]) -> ResumeItem:
    try:
        return kind.model_validate(values)
    except ModelValidationError as e:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in e.errors()})
        raise ValidationError(f"Invalid {kind.__name__.lower()} entry: {', '.join(fields)}", fields=fields) from e


class ResumeService:
    def __init__(self, store: ResumeStore):
        self.store = store

    def get_resume(self) -> Resume:
        return Resume(**self.store.load())

    def add_item(self, section: str, values: Dict[str, Any]) -> ResumeItem:
        kind = section_kind(section)
        if not values:
            raise ValidationError("Section and item data are required", fields=["item"])

        item = _validate(kind, {**_field_names(kind, values), "date_added": utcnow()})
        item = self.store.add(section, item)
        logger.info(f"Added {section} entry {item.id}")
        return item

    def update_item(self, section: str, item_id: str, changes: Dict[str, Any]) -> ResumeItem:
        kind = section_kind(section)
        if not changes:
            raise ValidationError("Section and item data are required", fields=["item"])

        existing = self.store.get(section, item_id)
        if existing is None:
            raise NotFoundError("Item not found")

        merged = {**existing.model_dump(), **_field_names(kind, changes), "date_updated": utcnow()}
        item = self.store.save(section, _validate(kind, merged))
        logger.info(f"Updated {section} entry {item_id}")
        return item

    def delete_item(self, section: str, item_id: str) -> None:
        section_kind(section)
        if not self.store.delete(section, item_id):
            raise NotFoundError("Item not found")
        logger.info(f"Deleted {section} entry {item_id}")
