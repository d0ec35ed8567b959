"""
Ordered lists of small records stored inline on a row (itinerary steps, FAQ
entries, why-choose-us cards, page sections).

Edits are append / update-at-index / remove-at-index and always return a new
list, so the ORM sees a fresh value and flags the JSON column as changed.
"""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from trekdesk.core.errors import NotFoundError


class HeadingItem(BaseModel):
    """Itinerary step or why-choose-us card."""
    heading: str = ""
    description: str = ""


class FAQItem(BaseModel):
    question: str = ""
    answer: str = ""


def _check_index(items: Sequence[Any], index: int) -> None:
    if index < 0 or index >= len(items):
        raise NotFoundError(f"No item at position {index}")


def append_item(items: Optional[List[Dict[str, Any]]], item: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [*(items or []), dict(item)]


def update_item(items: Optional[List[Dict[str, Any]]], index: int, changes: Dict[str, Any]) -> List[Dict[str, Any]]:
    items = list(items or [])
    _check_index(items, index)
    items[index] = {**items[index], **changes}
    return items


def remove_item(items: Optional[List[Dict[str, Any]]], index: int) -> List[Dict[str, Any]]:
    items = list(items or [])
    _check_index(items, index)
    del items[index]
    return items


def dump_items(items: Optional[Sequence[BaseModel]]) -> List[Dict[str, Any]]:
    """Pydantic items -> plain dicts for a JSON column, blank records dropped."""
    dumped = []
    for item in items or []:
        data = item.model_dump()
        if any(str(value).strip() for value in data.values() if value is not None):
            dumped.append(data)
    return dumped
