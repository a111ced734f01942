# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza la lógica del carrito de compras.
# El servicio trabaja sobre un agregado Cart; la ruta Flask lo lee y lo
# guarda en session['carrito'] (no hay reserva de stock en el servidor).
#
# reconcile_against_stock() es pura: recibe el carrito y el stock actual y
# devuelve un carrito NUEVO más los avisos de ajuste.
# ==============================================================================

import logging
from typing import Callable, Dict, List, Mapping, Tuple

from caceres_store.config import DELIVERY_SHIPPING_COST
from caceres_store.models import (
    AdjustmentNotice,
    Cart,
    CartItem,
    DeliveryType,
    ErrorKind,
    NoticeKind,
    Product,
    Result,
)
from caceres_store.repositories.interfaces import IProductRepository

logger = logging.getLogger(__name__)


def shipping_cost(delivery_type: str) -> float:
    """Envío a domicilio paga tarifa fija; retiro en punto de entrega es gratis."""
    return DELIVERY_SHIPPING_COST if delivery_type == DeliveryType.DELIVERY.value else 0.0


def cart_totals(cart: Cart, delivery_type: str = DeliveryType.PICKUP.value) -> Dict[str, float]:
    shipping = shipping_cost(delivery_type)
    return {
        'total_items': cart.total_items,
        'subtotal': cart.subtotal,
        'shipping': shipping,
        'total': round(cart.subtotal + shipping, 2),
    }


def reconcile_against_stock(
    cart: Cart,
    live_stock: Mapping[str, Product]
) -> Tuple[Cart, List[AdjustmentNotice]]:
    """
    Ajusta el carrito al stock real.

    - Producto inexistente → se quita (REMOVED_NOT_FOUND)
    - Agotado (in_stock falso o stock 0) → se quita (REMOVED_OUT_OF_STOCK)
    - Cantidad mayor al stock → se reduce (QUANTITY_REDUCED)
    - Precio distinto al actual → se actualiza (PRICE_UPDATED)

    El carrito de entrada NO se modifica.
    """
    adjusted = Cart()
    notices: List[AdjustmentNotice] = []

    for item in cart.items:
        product = live_stock.get(item.product_id)
        if product is None:
            notices.append(AdjustmentNotice(
                product_id=item.product_id,
                name=item.name,
                kind=NoticeKind.REMOVED_NOT_FOUND,
                requested=item.quantity,
                message=f'"{item.name}" ya no está disponible y se quitó del carrito',
            ))
            continue

        available = product.available
        if available <= 0:
            notices.append(AdjustmentNotice(
                product_id=item.product_id,
                name=item.name,
                kind=NoticeKind.REMOVED_OUT_OF_STOCK,
                requested=item.quantity,
                message=f'"{item.name}" se agotó y se quitó del carrito',
            ))
            continue

        new_item = CartItem(**vars(item))

        if new_item.quantity > available:
            notices.append(AdjustmentNotice(
                product_id=item.product_id,
                name=item.name,
                kind=NoticeKind.QUANTITY_REDUCED,
                requested=item.quantity,
                available=available,
                message=f'Solo hay {available} unidades de "{item.name}"',
            ))
            new_item.quantity = available

        if product.price != item.price:
            notices.append(AdjustmentNotice(
                product_id=item.product_id,
                name=item.name,
                kind=NoticeKind.PRICE_UPDATED,
                requested=new_item.quantity,
                available=available,
                message=f'El precio de "{item.name}" cambió a ${product.price:.2f}',
            ))
            new_item.price = product.price

        adjusted.items.append(new_item)

    return adjusted, notices


class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Agregar/actualizar/quitar items validando stock
    - Reconciliar con el stock real
    - Calcular totales

    Cada operación devuelve un carrito nuevo dentro de un Result.
    El stock para reconciliar llega por un loader inyectado:
        stock_loader() → {product_id: Product}
    """

    def __init__(
        self,
        product_repo: IProductRepository,
        stock_loader: Callable[[], Mapping[str, Product]]
    ):
        self.product_repo = product_repo
        self._stock_loader = stock_loader

    def _load_product(self, product_id: str) -> Result[Product]:
        try:
            product = self.product_repo.get_product(product_id)
        except OSError as e:
            logger.error("No se pudo leer el producto %s: %s", product_id, e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo consultar el producto')
        if product is None:
            return Result.failure(ErrorKind.NOT_FOUND, 'Producto no encontrado')
        return Result.success(product)

    def add_item(self, cart: Cart, product_id: str, quantity: int = 1) -> Result[Cart]:
        """
        Agrega un producto (o suma cantidad si ya está en el carrito).

        El producto debe existir y estar en stock; la cantidad resultante
        no puede superar stock_count.
        """
        if not product_id:
            return Result.failure(ErrorKind.VALIDATION, 'ID de producto inválido')
        if quantity is None or quantity <= 0:
            return Result.failure(ErrorKind.VALIDATION, 'Cantidad debe ser mayor a 0')

        loaded = self._load_product(product_id)
        if not loaded.ok:
            return loaded
        product = loaded.value

        available = product.available
        if available <= 0:
            return Result.failure(ErrorKind.CONFLICT, 'Producto agotado')

        updated = cart.copy()
        existing = updated.get_item(product.id)
        new_quantity = quantity + (existing.quantity if existing else 0)
        if new_quantity > available:
            return Result.failure(
                ErrorKind.CONFLICT,
                f'Stock insuficiente. Disponible: {available}',
                available=available,
            )

        if existing:
            existing.quantity = new_quantity
        else:
            updated.items.append(CartItem(
                product_id=product.id,
                name=product.name,
                price=product.price,
                quantity=quantity,
                image=product.image_urls[0] if product.image_urls else '',
                console=product.console,
            ))
        return Result.success(updated, 'Producto agregado al carrito')

    def update_quantity(self, cart: Cart, product_id: str, quantity: int) -> Result[Cart]:
        """Cambia la cantidad; 0 o menos quita el item."""
        if cart.get_item(product_id) is None:
            return Result.failure(ErrorKind.NOT_FOUND, 'El producto no está en el carrito')
        if quantity is None or quantity <= 0:
            return self.remove_item(cart, product_id)

        loaded = self._load_product(product_id)
        if not loaded.ok:
            return loaded
        available = loaded.value.available
        if quantity > available:
            return Result.failure(
                ErrorKind.CONFLICT,
                f'Stock insuficiente. Disponible: {available}',
                available=available,
            )

        updated = cart.copy()
        updated.get_item(product_id).quantity = quantity
        return Result.success(updated)

    def remove_item(self, cart: Cart, product_id: str) -> Result[Cart]:
        updated = Cart(items=[CartItem(**vars(i)) for i in cart.items if i.product_id != product_id])
        if len(updated.items) == len(cart.items):
            return Result.failure(ErrorKind.NOT_FOUND, 'El producto no está en el carrito')
        return Result.success(updated, 'Producto eliminado del carrito')

    def clear(self) -> Result[Cart]:
        return Result.success(Cart(), 'Carrito vaciado')

    def reconcile(self, cart: Cart) -> Result[Tuple[Cart, List[AdjustmentNotice]]]:
        """Reconcilia contra el stock leído en este momento."""
        try:
            live_stock = self._stock_loader()
        except OSError as e:
            logger.error("No se pudo leer el stock para reconciliar: %s", e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo verificar el stock')

        adjusted, notices = reconcile_against_stock(cart, live_stock)
        if notices:
            logger.info("Carrito ajustado: %s", ', '.join(n.kind.value for n in notices))
        return Result.success((adjusted, notices))
