"""Category tree management and drag-and-drop reordering"""

from dataclasses import dataclass
from typing import Any, Optional

from shop_api.errors import ValidationError
from .actions import ActionResult, run_action
from .resources import CATEGORIES, ResourceProvider, find_in_tree, flatten_tree


@dataclass
class DropEvent:
    """A tree node dragged onto (or next to) another node"""
    drag_id: int
    drop_id: int
    drop_to_gap: bool
    drop_position: int


@dataclass
class CategoryMove:
    category_id: int
    parent_id: Optional[int]
    display_order: int

    def to_payload(self) -> dict[str, Any]:
        # The API takes parent 0 for "move to the root"
        return {
            "parentId": 0 if self.parent_id is None else self.parent_id,
            "displayOrder": self.display_order,
        }


def _is_descendant(tree: list[dict], ancestor_id: int, node_id: int) -> bool:
    ancestor = find_in_tree(tree, ancestor_id)
    if ancestor is None:
        return False
    return any(n.get("id") == node_id for n in flatten_tree(ancestor.get("children") or []))


def resolve_drop(tree: list[dict], event: DropEvent) -> CategoryMove:
    """
    Translate a drop into a new parent and display order.

    Dropped in a gap: the dragged node becomes a sibling of the drop target,
    at the drop position. Dropped onto a node: it becomes that node's first
    child.
    """
    if event.drag_id == event.drop_id:
        raise ValidationError("Нельзя переместить категорию в саму себя")

    if event.drop_to_gap:
        target = find_in_tree(tree, event.drop_id)
        parent_id = target.get("parentId") if target else None
        display_order = max(0, event.drop_position)
    else:
        parent_id = event.drop_id
        display_order = 0

    if parent_id and (parent_id == event.drag_id or _is_descendant(tree, event.drag_id, parent_id)):
        raise ValidationError("Нельзя переместить категорию внутрь её подкатегории")

    return CategoryMove(event.drag_id, parent_id or None, display_order)


class CategoriesService:
    def __init__(self, resources: ResourceProvider):
        self.resources = resources

    async def tree(self) -> list[dict]:
        return await self.resources.get_category_tree()

    async def save(self, values: dict[str, Any], category_id: Optional[int] = None) -> ActionResult:
        if not (values.get("name") or "").strip():
            return ActionResult(ok=False, message="Введите название", field_errors={"name": "Введите название"})

        if category_id is None:
            call = lambda: self.resources.create(CATEGORIES, values)
            success = "Категория создана"
        else:
            call = lambda: self.resources.update(CATEGORIES, category_id, values)
            success = "Категория обновлена"

        return await run_action(
            "Category save",
            call,
            success=success,
            failure="Ошибка сохранения",
            refetch=self.tree,
        )

    async def delete(self, category_id: int) -> ActionResult:
        return await run_action(
            f"Category {category_id} delete",
            lambda: self.resources.delete_one(CATEGORIES, category_id),
            success="Категория удалена",
            failure="Не удалось удалить категорию",
            refetch=self.tree,
        )

    async def move(self, event: DropEvent) -> ActionResult:
        """Apply a drop as one update of the dragged category"""
        tree = await self.tree()

        async def call():
            move = resolve_drop(tree, event)
            return await self.resources.update(CATEGORIES, move.category_id, move.to_payload())

        return await run_action(
            f"Category {event.drag_id} move",
            call,
            success="Порядок обновлён",
            failure="Ошибка при перемещении",
            refetch=self.tree,
        )
