# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula el acceso a products.json
# ==============================================================================

from typing import List, Optional

from caceres_store.models import Product
from caceres_store.repositories.base import ListRepository


class ProductRepository(ListRepository):
    """
    Repositorio de productos.

    Las asociaciones de categoría (parent_category / child_category) NO se
    guardan: las resuelve ProductService a partir de category_id y
    parent_category_id.
    """

    file_name = 'products.json'

    def get_all_products(self) -> List[Product]:
        return [Product.from_dict(r) for r in self.get_all()]

    def get_product(self, product_id: str) -> Optional[Product]:
        record = self.get_by_id(product_id)
        return Product.from_dict(record) if record else None

    def save_product(self, product: Product) -> None:
        self.upsert(product.to_dict())
