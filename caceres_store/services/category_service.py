# ==============================================================================
# SERVICIO DE CATEGORÍAS
# ==============================================================================
# Árbol de navegación (padres + hijos), carga diferida de subcategorías,
# conteo agregado de productos y gestión de categorías del admin.
#
# Las funciones de árbol son puras: no leen ni escriben almacenamiento y
# nunca lanzan excepciones por datos mal formados.
# ==============================================================================

import logging
import re
import unicodedata
import uuid
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from caceres_store.models import (
    Category,
    CategoryNode,
    ErrorKind,
    Result,
    utc_now_iso,
)
from caceres_store.repositories.interfaces import ICategoryRepository, IProductRepository

logger = logging.getLogger(__name__)

_NON_SLUG_CHARS = re.compile(r'[^a-z0-9]+')


# ═══════════════════════════════════════════════════════════════════════════════
# FUNCIONES PURAS DEL ÁRBOL
# ═══════════════════════════════════════════════════════════════════════════════

def slugify(name: str, slug: Optional[str] = None) -> str:
    """
    Slug para URLs. Un slug explícito tiene prioridad.

    Minúsculas y cada tramo de caracteres fuera de [a-z0-9] pasa a un solo '-'.
    No garantiza unicidad.
    """
    if slug:
        return slug
    return _NON_SLUG_CHARS.sub('-', (name or '').lower())


def _sort_key(node: CategoryNode):
    return (node.sort_order if node.sort_order is not None else 0, node.name)


def _to_node(category: Category) -> CategoryNode:
    return CategoryNode(
        id=category.id,
        name=category.name,
        slug=slugify(category.name, category.slug),
        parent_id=category.parent_id,
        sort_order=category.sort_order,
    )


def build_tree(rows: Iterable[Category]) -> List[CategoryNode]:
    """
    Convierte una lista plana de categorías en raíces con sus hijos.

    - Padre ausente del conjunto (o nulo, o la propia fila) → raíz.
    - Filas atrapadas en un ciclo se promueven a raíz de una en una, en
      orden de entrada, y se registra un warning.
    - Raíces y hermanos se ordenan por (sort_order o 0, name).

    Con ids duplicados gana la última fila.

    Returns:
        Lista ordenada de raíces
    """
    by_id: Dict[str, Category] = {}
    for row in rows:
        by_id[row.id] = row

    parent_of: Dict[str, Optional[str]] = {}
    for cat_id, row in by_id.items():
        parent_id = row.parent_id
        if parent_id and parent_id != cat_id and parent_id in by_id:
            parent_of[cat_id] = parent_id
        else:
            parent_of[cat_id] = None

    children_of: Dict[str, List[str]] = {cat_id: [] for cat_id in by_id}
    for cat_id, parent_id in parent_of.items():
        if parent_id is not None:
            children_of[parent_id].append(cat_id)

    reached = set()

    def mark_reachable(start: str) -> None:
        pending = [start]
        while pending:
            current = pending.pop()
            if current in reached:
                continue
            reached.add(current)
            pending.extend(children_of[current])

    for cat_id, parent_id in parent_of.items():
        if parent_id is None:
            mark_reachable(cat_id)

    # Lo que queda sin alcanzar cuelga de un ciclo
    for cat_id in by_id:
        if cat_id in reached:
            continue
        old_parent = parent_of[cat_id]
        logger.warning(
            "Ciclo en categorías: '%s' (%s) se promueve a raíz (padre %s)",
            by_id[cat_id].name, cat_id, old_parent
        )
        children_of[old_parent].remove(cat_id)
        parent_of[cat_id] = None
        mark_reachable(cat_id)

    nodes = {cat_id: _to_node(row) for cat_id, row in by_id.items()}
    roots = []
    for cat_id, parent_id in parent_of.items():
        if parent_id is None:
            roots.append(nodes[cat_id])
        else:
            nodes[parent_id].children.append(nodes[cat_id])

    for node in nodes.values():
        node.children.sort(key=_sort_key)
    roots.sort(key=_sort_key)
    return roots


def ensure_children(
    node: CategoryNode,
    fetch_children: Callable[[str], Result[List[Category]]]
) -> CategoryNode:
    """
    Carga los hijos de un nodo solo si todavía no tiene ninguno.

    Es una caché: un nodo con hijos se devuelve tal cual, sin volver a
    consultar. Los hijos obtenidos se agregan en el orden de la consulta.
    Si la consulta falla, el nodo queda sin hijos y el error se registra.
    """
    if node.children:
        return node

    try:
        result = fetch_children(node.id)
    except Exception:
        logger.exception("Error cargando subcategorías de %s", node.id)
        return node

    if not result.ok:
        logger.error("Error cargando subcategorías de %s: %s", node.id, result.message)
        return node

    node.children = [_to_node(row) for row in result.value or []]
    return node


def aggregate_product_counts(
    categories: Iterable[Category],
    product_links: Mapping[str, int]
) -> Dict[str, int]:
    """
    Conteo agregado: productos directos + el agregado de cada hija.

    Args:
        categories: Todas las categorías (definen la relación padre/hijo)
        product_links: {category_id: cantidad de productos directos}

    Returns:
        {category_id: total agregado}

    El memo es local a la llamada. En un ciclo la recursión se corta al
    encontrar un nodo en curso (su valor parcial queda indefinido).
    """
    children_of: Dict[str, List[str]] = {}
    ids = []
    for category in categories:
        ids.append(category.id)
        if category.parent_id and category.parent_id != category.id:
            children_of.setdefault(category.parent_id, []).append(category.id)

    memo: Dict[str, int] = {}

    def total(cat_id: str) -> int:
        if cat_id in memo:
            return memo[cat_id]
        memo[cat_id] = product_links.get(cat_id, 0)
        memo[cat_id] += sum(total(child) for child in children_of.get(cat_id, []))
        return memo[cat_id]

    return {cat_id: total(cat_id) for cat_id in ids}


def _fold(text: str) -> str:
    """Minúsculas y sin acentos (para búsquedas)."""
    decomposed = unicodedata.normalize('NFKD', text or '')
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def filter_tree(tree: List[CategoryNode], query: str) -> List[CategoryNode]:
    """
    Búsqueda del selector de categorías (sin acentos ni mayúsculas).

    Una raíz se conserva si coincide ella o alguno de sus hijos; si coincide
    la raíz conserva todos sus hijos, si no solo los que coinciden.
    El árbol de entrada no se modifica.
    """
    needle = _fold(query).strip()
    if not needle:
        return tree

    filtered = []
    for root in tree:
        root_name = _fold(root.name)
        root_match = needle in root_name
        matching = [
            child for child in root.children
            if needle in _fold(child.name) or needle in f"{root_name} {_fold(child.name)}"
        ]
        if root_match or matching:
            filtered.append(CategoryNode(
                id=root.id,
                name=root.name,
                slug=root.slug,
                parent_id=root.parent_id,
                sort_order=root.sort_order,
                children=list(root.children) if root_match else matching,
            ))
    return filtered


# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIO
# ═══════════════════════════════════════════════════════════════════════════════

class CategoryService:
    """
    Servicio de categorías respaldado por repositorio.

    Responsabilidades:
    - Árbol de navegación (solo activas)
    - Carga diferida de subcategorías
    - Vista de administración con conteos
    - Alta, activación/desactivación y eliminación
    """

    def __init__(self, category_repo: ICategoryRepository, product_repo: IProductRepository):
        self.category_repo = category_repo
        self.product_repo = product_repo

    def get_navigation_tree(self) -> Result[List[CategoryNode]]:
        try:
            rows = self.category_repo.get_active()
        except OSError as e:
            logger.error("No se pudieron leer las categorías: %s", e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudieron cargar las categorías')
        return Result.success(build_tree(rows))

    def fetch_children(self, parent_id: str) -> Result[List[Category]]:
        """Subcategorías activas de parent_id (límite de consulta de hijos)."""
        try:
            return Result.success(self.category_repo.get_active_children(parent_id))
        except OSError as e:
            return Result.failure(ErrorKind.STORAGE, f'No se pudieron cargar subcategorías: {e}')

    def load_children(self, node: CategoryNode) -> CategoryNode:
        return ensure_children(node, self.fetch_children)

    def get_node(self, category_id: str) -> Result[CategoryNode]:
        """Nodo de una categoría activa, con sus subcategorías cargadas."""
        try:
            category = self.category_repo.get_category(category_id)
        except OSError as e:
            logger.error("No se pudo leer la categoría %s: %s", category_id, e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo cargar la categoría')
        if category is None or not category.is_active:
            return Result.failure(ErrorKind.NOT_FOUND, 'Categoría no encontrada')
        return Result.success(self.load_children(_to_node(category)))

    def _direct_product_counts(self) -> Counter:
        return Counter(
            p.category_id for p in self.product_repo.get_all_products() if p.category_id
        )

    def get_admin_overview(self) -> Result[List[Dict[str, Any]]]:
        """
        Todas las categorías (activas e inactivas) con sus conteos.

        Orden: primero las raíces, luego las hijas; dentro de cada grupo
        por (sort_order o 0, name).
        """
        try:
            categories = self.category_repo.get_all_categories()
            direct = self._direct_product_counts()
        except OSError as e:
            logger.error("No se pudo armar la vista de categorías: %s", e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudieron cargar las categorías')

        known = {c.id for c in categories}
        child_counts = Counter(
            c.parent_id for c in categories if c.parent_id and c.parent_id != c.id
        )
        aggregates = aggregate_product_counts(categories, direct)
        names = {c.id: c.name for c in categories}

        def is_root(category: Category) -> bool:
            return not category.parent_id or category.parent_id not in known

        ordered = sorted(categories, key=lambda c: (
            0 if is_root(c) else 1,
            c.sort_order if c.sort_order is not None else 0,
            c.name,
        ))

        overview = []
        for category in ordered:
            data = category.to_dict()
            data['slug'] = slugify(category.name, category.slug)
            data['parent_name'] = names.get(category.parent_id) if category.parent_id else None
            data['product_count'] = direct.get(category.id, 0)
            data['child_count'] = child_counts.get(category.id, 0)
            data['aggregate_product_count'] = aggregates.get(category.id, 0)
            overview.append(data)
        return Result.success(overview)

    def add_category(
        self,
        name: str,
        parent_id: Optional[str] = None,
        sort_order: Optional[int] = None
    ) -> Result[Category]:
        name = (name or '').strip()
        if not name:
            return Result.failure(ErrorKind.VALIDATION, 'El nombre de la categoría es requerido')

        try:
            if parent_id and self.category_repo.get_category(parent_id) is None:
                return Result.failure(ErrorKind.NOT_FOUND, 'Categoría padre no encontrada')

            category = Category(
                id=uuid.uuid4().hex,
                name=name,
                slug=slugify(name),
                parent_id=parent_id or None,
                sort_order=sort_order,
                is_active=True,
                created_at=utc_now_iso(),
            )
            self.category_repo.save_category(category)
        except OSError as e:
            logger.error("No se pudo guardar la categoría '%s': %s", name, e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo guardar la categoría')

        logger.info("Categoría creada: %s (%s)", category.name, category.id)
        return Result.success(category, 'Categoría creada')

    def toggle_active(self, category_id: str) -> Result[Category]:
        try:
            category = self.category_repo.get_category(category_id)
            if category is None:
                return Result.failure(ErrorKind.NOT_FOUND, 'Categoría no encontrada')
            category.is_active = not category.is_active
            self.category_repo.save_category(category)
        except OSError as e:
            logger.error("No se pudo actualizar la categoría %s: %s", category_id, e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo actualizar la categoría')
        return Result.success(category)

    def delete_category(self, category_id: str) -> Result[str]:
        """
        Elimina una categoría.

        Sin hijas y sin productos directos → borrado definitivo ('deleted').
        En otro caso se desactiva ('deactivated') y deja de mostrarse.
        """
        try:
            category = self.category_repo.get_category(category_id)
            if category is None:
                return Result.failure(ErrorKind.NOT_FOUND, 'Categoría no encontrada')

            has_children = any(
                c.parent_id == category_id and c.id != category_id
                for c in self.category_repo.get_all_categories()
            )
            has_products = self._direct_product_counts().get(category_id, 0) > 0

            if not has_children and not has_products:
                self.category_repo.delete_category(category_id)
                action = 'deleted'
            else:
                category.is_active = False
                self.category_repo.save_category(category)
                action = 'deactivated'
        except OSError as e:
            logger.error("No se pudo eliminar la categoría %s: %s", category_id, e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo eliminar la categoría')

        logger.info("Categoría %s: %s", category_id, action)
        return Result.success(action, action=action)
