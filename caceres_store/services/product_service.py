# ==============================================================================
# SERVICIO DE PRODUCTOS
# ==============================================================================
# Resuelve las asociaciones de categoría de cada producto y arma el listado
# de la tienda. El stock "en vivo" que usa el carrito sale de aquí.
# ==============================================================================

import logging
from typing import Dict, List, Optional

from caceres_store.models import ErrorKind, Product, Result
from caceres_store.repositories.interfaces import ICategoryRepository, IProductRepository

logger = logging.getLogger(__name__)


class ProductService:
    """
    Servicio de productos.

    Responsabilidades:
    - Resolver parent_category / child_category
    - Listado público (solo en stock, filtros por categoría y texto)
    - Instantánea de stock para reconciliar el carrito
    """

    def __init__(self, product_repo: IProductRepository, category_repo: ICategoryRepository):
        self.product_repo = product_repo
        self.category_repo = category_repo

    def get_products_with_categories(self) -> List[Product]:
        """
        Todos los productos con sus categorías resueltas.

        Usa todas las categorías (activas o no) para que los pedidos viejos
        sigan agrupándose aunque la categoría se haya desactivado.
        Lanza OSError si falla el almacenamiento.
        """
        categories = {c.id: c for c in self.category_repo.get_all_categories()}
        products = self.product_repo.get_all_products()
        for product in products:
            child = categories.get(product.category_id) if product.category_id else None
            parent = (
                categories.get(product.parent_category_id)
                if product.parent_category_id else None
            )
            # Si el producto apunta directo a una categoría raíz, esa es la padre
            if parent is None and child is not None:
                if child.parent_id and child.parent_id in categories:
                    parent = categories[child.parent_id]
                else:
                    parent, child = child, None
            product.parent_category = parent
            product.child_category = child
        return products

    def list_storefront(
        self,
        category: Optional[str] = None,
        query: Optional[str] = None
    ) -> Result[List[Product]]:
        """
        Productos visibles en la tienda (en stock), más nuevos primero.

        Args:
            category: id, slug o nombre de la categoría (o de su padre)
            query: Texto a buscar en nombre, consola y SKU
        """
        try:
            products = self.get_products_with_categories()
        except OSError as e:
            logger.error("No se pudo cargar el catálogo: %s", e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo cargar el catálogo')

        visible = [p for p in products if p.in_stock]

        if category:
            wanted = category.strip().lower()

            def matches(cat) -> bool:
                return cat is not None and wanted in (
                    cat.id.lower(), (cat.slug or '').lower(), cat.name.lower()
                )

            visible = [
                p for p in visible
                if matches(p.child_category) or matches(p.parent_category)
            ]

        if query:
            needle = query.strip().lower()
            visible = [
                p for p in visible
                if needle in p.name.lower()
                or needle in p.console.lower()
                or needle in p.sku.lower()
            ]

        visible.sort(key=lambda p: p.created_at or '', reverse=True)
        return Result.success(visible)

    def get_live_stock(self) -> Dict[str, Product]:
        """{product_id: Product} leído en este momento. Lanza OSError si falla."""
        return {p.id: p for p in self.product_repo.get_all_products()}
