# ==============================================================================
# REPOSITORIO DE CATEGORÍAS
# ==============================================================================
# Encapsula el acceso a categories.json
# ==============================================================================

from typing import Any, Dict, List, Optional

from caceres_store.models import Category
from caceres_store.repositories.base import ListRepository


class CategoryRepository(ListRepository):
    """
    Repositorio de categorías.

    Formato de datos en categories.json:
    [
        {"id": "c1", "name": "Nintendo", "slug": "nintendo",
         "parent_id": null, "sort_order": 1, "is_active": true},
        ...
    ]
    """

    file_name = 'categories.json'

    def get_all_categories(self) -> List[Category]:
        """Todas las categorías, activas e inactivas."""
        return [Category.from_dict(r) for r in self.get_all()]

    def get_active(self) -> List[Category]:
        """Categorías activas (límite de consulta del árbol de navegación)."""
        return [c for c in self.get_all_categories() if c.is_active]

    def get_active_children(self, parent_id: str) -> List[Category]:
        """Categorías activas cuyo parent_id es el indicado (en orden de archivo)."""
        return [c for c in self.get_active() if c.parent_id == str(parent_id)]

    def get_category(self, category_id: str) -> Optional[Category]:
        record = self.get_by_id(category_id)
        return Category.from_dict(record) if record else None

    def save_category(self, category: Category) -> None:
        self.upsert(category.to_dict())

    def delete_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        return self.delete(category_id)
