"""
Category Data Model

Each category stores its full path from the root as ``ancestors``
(``[{"id", "name", "slug"}, ...]``, root first, direct parent last). The path
is written on save and rewritten for the whole subtree whenever a category is
renamed or moved, so subtree lookups never need a recursive query.
"""
import uuid
from datetime import datetime
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

@dataclass
class Category:
    """Category Model"""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    slug: str = ""
    description: Optional[str] = None
    parent_id: Optional[str] = None
    ancestors: List[Dict[str, Any]] = field(default_factory=list)
    image: Optional[str] = None
    seo: Dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    display_order: int = 0
    products_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def ref(self) -> Dict[str, Any]:
        """Entry used for this category inside a descendant's ancestors"""
        return {"id": self.id, "name": self.name, "slug": self.slug}

    @property
    def ancestor_ids(self) -> List[str]:
        return [ancestor["id"] for ancestor in self.ancestors]

def build_ancestors(parent: Optional[Category]) -> List[Dict[str, Any]]:
    """Ancestors for a child of ``parent`` (empty for a root category)"""
    if parent is None:
        return []
    return [dict(ancestor) for ancestor in parent.ancestors] + [parent.ref()]

def creates_cycle(category_id: str, new_parent: Category) -> bool:
    """True if making ``new_parent`` the parent of ``category_id`` would loop"""
    return new_parent.id == category_id or category_id in new_parent.ancestor_ids

def rebase_ancestors(descendant_ancestors: List[Dict[str, Any]], category: Category) -> List[Dict[str, Any]]:
    """
    Rebuild a descendant's path after ``category`` was renamed or moved.

    Everything above ``category`` is replaced by its current ancestors, the
    entry for ``category`` itself is refreshed, and the segment below it is
    kept unchanged.
    """
    for index, ancestor in enumerate(descendant_ancestors):
        if ancestor.get("id") == category.id:
            tail = [dict(entry) for entry in descendant_ancestors[index + 1:]]
            return build_ancestors(category) + tail
    raise ValueError(f"Category {category.id} is not an ancestor of this path")
