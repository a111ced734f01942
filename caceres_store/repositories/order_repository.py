# ==============================================================================
# REPOSITORIO DE PEDIDOS
# ==============================================================================
# Encapsula el acceso a orders.json
# ==============================================================================

from typing import List, Optional

from caceres_store.models import Order
from caceres_store.repositories.base import ListRepository


class OrderRepository(ListRepository):
    """Repositorio de pedidos (lista en orden de creación)."""

    file_name = 'orders.json'

    def get_all_orders(self) -> List[Order]:
        """Todos los pedidos (límite de consulta del dashboard)."""
        return [Order.from_dict(r) for r in self.get_all()]

    def get_order(self, order_id: str) -> Optional[Order]:
        record = self.get_by_id(order_id)
        return Order.from_dict(record) if record else None

    def find_by_reference(self, reference: str) -> Optional[Order]:
        """Busca el pedido por la referencia enviada a la pasarela de pago."""
        record = self.find_by('payment_reference', reference)
        return Order.from_dict(record) if record else None

    def save_order(self, order: Order) -> None:
        self.upsert(order.to_dict())
