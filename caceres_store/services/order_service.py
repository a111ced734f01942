# ==============================================================================
# SERVICIO DE PEDIDOS
# ==============================================================================
# Checkout, actualización de pago por webhook y cambios de estado del admin.
#
# FLUJO DE PAGO:
#   Tarjeta        → status 'pendiente', payment_status 'processing';
#                    la pasarela confirma luego por webhook.
#   Contra entrega → status 'pendiente', payment_status 'pending';
#                    el admin avanza el status (enviada, completada...).
#
# STOCK: se descuenta al entrar a un estado confirmado (confirmed, enviada,
# completada...) y se repone si el pedido sale de ellos (p. ej. cancelada).
# ==============================================================================

import logging
import re
import time
import uuid
from typing import List, Optional

from caceres_store.config import (
    DELIVERY_POINTS,
    PENDING_ORDER_STATUS,
    STOCK_COMMITTED_ORDER_STATUSES,
)
from caceres_store.models import (
    Cart,
    CheckoutPaymentMethod,
    CustomerInfo,
    DeliveryInfo,
    DeliveryType,
    ErrorKind,
    Order,
    OrderItem,
    Result,
    utc_now_iso,
)
from caceres_store.repositories.interfaces import IOrderRepository, IProductRepository
from caceres_store.services.cart_service import CartService, shipping_cost

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


class OrderService:
    """
    Servicio de pedidos.

    Responsabilidades:
    - Validar datos del checkout y crear el pedido
    - Aplicar el estado informado por la pasarela de pago
    - Cambiar el estado de un pedido (admin)
    - Descontar / reponer stock según el estado del pedido
    - Listar pedidos
    """

    def __init__(
        self,
        order_repo: IOrderRepository,
        cart_service: CartService,
        product_repo: IProductRepository
    ):
        self.order_repo = order_repo
        self.cart_service = cart_service
        self.product_repo = product_repo

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    def _validate_checkout(
        self,
        customer: CustomerInfo,
        delivery: DeliveryInfo,
        payment_method: str
    ) -> Optional[str]:
        """Retorna el mensaje de error o None si todo es válido."""
        if not all(v.strip() for v in (
            customer.first_name, customer.last_name, customer.email, customer.phone
        )):
            return 'Por favor completa nombre, apellido, email y teléfono.'

        if not EMAIL_PATTERN.match(customer.email.strip()):
            return 'Por favor ingresa un email válido.'

        if delivery.delivery_type == DeliveryType.PICKUP.value:
            if delivery.delivery_point not in DELIVERY_POINTS:
                return 'Por favor selecciona un punto de entrega.'
        elif delivery.delivery_type == DeliveryType.DELIVERY.value:
            required = (
                delivery.department, delivery.municipality,
                delivery.address, delivery.reference_point,
            )
            if not all(v.strip() for v in required):
                return 'Por favor completa todos los datos de entrega obligatorios.'
            if not delivery.map_location.strip():
                return 'Por favor selecciona la ubicación exacta de entrega en el mapa.'
        else:
            return 'Tipo de entrega inválido'

        if payment_method not in {m.value for m in CheckoutPaymentMethod}:
            return 'Método de pago inválido'
        return None

    def checkout(
        self,
        cart: Cart,
        customer: CustomerInfo,
        delivery: DeliveryInfo,
        payment_method: str
    ) -> Result[Order]:
        """
        Crea un pedido a partir del carrito.

        El carrito debe reconciliar sin avisos: si el stock o los precios
        cambiaron se responde CONFLICT con los avisos en details['notices']
        y el carrito ajustado en details['cart'].
        """
        error = self._validate_checkout(customer, delivery, payment_method)
        if error:
            return Result.failure(ErrorKind.VALIDATION, error)

        if cart.is_empty:
            return Result.failure(ErrorKind.VALIDATION, 'El carrito está vacío')

        reconciled = self.cart_service.reconcile(cart)
        if not reconciled.ok:
            return reconciled
        adjusted, notices = reconciled.value
        if notices:
            return Result.failure(
                ErrorKind.CONFLICT,
                'El carrito cambió: revisa stock y precios antes de confirmar',
                notices=[n.to_dict() for n in notices],
                cart=adjusted.to_list(),
            )

        is_card = payment_method == CheckoutPaymentMethod.CARD.value
        is_delivery = delivery.delivery_type == DeliveryType.DELIVERY.value
        now = utc_now_iso()

        order = Order(
            id=uuid.uuid4().hex,
            product_id=cart.items[0].product_id,
            quantity=cart.total_items,
            total_amount=round(cart.subtotal + shipping_cost(delivery.delivery_type), 2),
            status=PENDING_ORDER_STATUS,
            payment_status='processing' if is_card else 'pending',
            payment_method='credit-debit' if is_card else 'cash',
            created_at=now,
            updated_at=now,
            customer_name=customer.full_name,
            customer_email=customer.email.strip(),
            customer_phone=customer.phone.strip(),
            customer_address=delivery.address.strip() if is_delivery else '',
            delivery_type=delivery.delivery_type,
            delivery_point=None if is_delivery else delivery.delivery_point,
            delivery_department=delivery.department if is_delivery else None,
            delivery_municipality=delivery.municipality if is_delivery else None,
            delivery_reference_point=delivery.reference_point if is_delivery else None,
            delivery_map_location=delivery.map_location if is_delivery else None,
            payment_reference=f"ORDER-{int(time.time() * 1000)}" if is_card else None,
            items=[
                OrderItem(product_id=i.product_id, quantity=i.quantity, price=i.price)
                for i in cart.items
            ],
        )

        try:
            self.order_repo.save_order(order)
        except OSError as e:
            logger.error("No se pudo guardar el pedido: %s", e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo registrar el pedido')

        logger.info(
            "Pedido creado %s (%s, total %.2f)", order.id, order.payment_method, order.total_amount
        )
        return Result.success(order, 'Pedido registrado')

    # =========================================================================
    # PAGOS Y ESTADOS
    # =========================================================================

    def apply_payment_update(
        self,
        reference: str,
        gateway_status: str,
        transaction_id: Optional[str] = None
    ) -> Result[Order]:
        """
        Aplica el estado que informa la pasarela (webhook).

        payment_status = estado de la pasarela en minúsculas.
        APPROVED además confirma el pedido.
        """
        if not reference or not gateway_status:
            return Result.failure(ErrorKind.VALIDATION, 'Referencia y estado son requeridos')

        try:
            order = self.order_repo.find_by_reference(reference)
            if order is None:
                logger.warning("Webhook de pago con referencia desconocida: %s", reference)
                return Result.failure(ErrorKind.NOT_FOUND, 'Pedido no encontrado')

            previous_status = order.status
            order.payment_status = gateway_status.lower()
            if transaction_id:
                order.payment_transaction_id = transaction_id
            if gateway_status == 'APPROVED':
                order.status = 'confirmed'
                order.payment_status = 'approved'
            order.updated_at = utc_now_iso()
            self._sync_stock(order, previous_status)
            self.order_repo.save_order(order)
        except OSError as e:
            logger.error("No se pudo actualizar el pago de %s: %s", reference, e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo actualizar el pedido')

        logger.info("Pago %s → %s (pedido %s)", reference, order.payment_status, order.id)
        return Result.success(order)

    def update_status(self, order_id: str, status: str) -> Result[Order]:
        status = (status or '').strip()
        if not status:
            return Result.failure(ErrorKind.VALIDATION, 'Estado requerido')

        try:
            order = self.order_repo.get_order(order_id)
            if order is None:
                return Result.failure(ErrorKind.NOT_FOUND, 'Pedido no encontrado')
            previous_status = order.status
            order.status = status
            order.updated_at = utc_now_iso()
            self._sync_stock(order, previous_status)
            self.order_repo.save_order(order)
        except OSError as e:
            logger.error("No se pudo actualizar el pedido %s: %s", order_id, e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudo actualizar el pedido')
        return Result.success(order, 'Estado actualizado')

    # =========================================================================
    # STOCK
    # =========================================================================

    def _sync_stock(self, order: Order, previous_status: Optional[str]) -> None:
        """Descuenta o repone stock si el pedido cruzó el límite de confirmado."""
        was_committed = (previous_status or '').lower() in STOCK_COMMITTED_ORDER_STATUSES
        is_committed = (order.status or '').lower() in STOCK_COMMITTED_ORDER_STATUSES
        if is_committed and not was_committed:
            self._move_stock(order, -1)
        elif was_committed and not is_committed:
            self._move_stock(order, 1)

    def _move_stock(self, order: Order, direction: int) -> None:
        """
        Aplica las líneas del pedido al stock (direction -1 descuenta, +1 repone).

        Pedidos sin cart_items usan product_id + quantity. El stock nunca
        queda negativo; in_stock se apaga al llegar a 0. Lanza OSError.
        """
        lines = order.items or (
            [OrderItem(product_id=order.product_id, quantity=order.quantity or 0, price=0.0)]
            if order.product_id else []
        )
        for line in lines:
            product = self.product_repo.get_product(line.product_id)
            if product is None:
                logger.warning(
                    "Pedido %s: producto %s no existe, stock sin cambios", order.id, line.product_id
                )
                continue
            stock = (product.stock_count or 0) + direction * line.quantity
            if stock < 0:
                logger.warning(
                    "Pedido %s: stock de %s quedaría en %d; se deja en 0", order.id, product.id, stock
                )
                stock = 0
            product.stock_count = stock
            product.in_stock = stock > 0
            self.product_repo.save_product(product)
        logger.info(
            "Stock %s por pedido %s", 'descontado' if direction < 0 else 'repuesto', order.id
        )

    # =========================================================================
    # LISTADO
    # =========================================================================

    def list_orders(self) -> Result[List[Order]]:
        """Pedidos, más recientes primero."""
        try:
            orders = self.order_repo.get_all_orders()
        except OSError as e:
            logger.error("No se pudieron leer los pedidos: %s", e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudieron cargar los pedidos')
        orders.sort(key=lambda o: o.created_at or '', reverse=True)
        return Result.success(orders)
