# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Los servicios dependen de estos protocolos, NO de las clases JSON.
# Así los tests pueden pasar repositorios en memoria y el almacenamiento
# real (base de datos hospedada) puede reemplazar a los JSON sin tocar
# la lógica de negocio.
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from caceres_store.models import Category, Product, Order


@runtime_checkable
class ICategoryRepository(Protocol):
    """
    Consultas de categorías.

    get_active() es el límite de consulta: el filtro is_active se aplica
    aquí, antes de que los datos lleguen al constructor del árbol.
    """

    def get_all_categories(self) -> List[Category]:
        ...

    def get_active(self) -> List[Category]:
        ...

    def get_active_children(self, parent_id: str) -> List[Category]:
        ...

    def get_category(self, category_id: str) -> Optional[Category]:
        ...

    def save_category(self, category: Category) -> None:
        ...

    def delete_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class IProductRepository(Protocol):
    """Consultas de productos."""

    def get_all_products(self) -> List[Product]:
        ...

    def get_product(self, product_id: str) -> Optional[Product]:
        ...

    def save_product(self, product: Product) -> None:
        ...


@runtime_checkable
class IOrderRepository(Protocol):
    """Consultas de pedidos."""

    def get_all_orders(self) -> List[Order]:
        ...

    def get_order(self, order_id: str) -> Optional[Order]:
        ...

    def find_by_reference(self, reference: str) -> Optional[Order]:
        ...

    def save_order(self, order: Order) -> None:
        ...
