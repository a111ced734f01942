# ==============================================================================
# SERVICIO DE MÉTRICAS DEL DASHBOARD
# ==============================================================================
# Reduce pedidos y productos a métricas de negocio.
#
# REGLA PRINCIPAL: un pedido cuenta como venta si
#   payment_status ∈ {APPROVED, PAID, COMPLETED}   (sin importar mayúsculas)
#   O status ∈ {completada, enviada, completado}
# Son dos campos que actualizan caminos distintos (tarjeta vs contra entrega):
# la regla es un OR, NO se simplifica a un solo campo.
# ==============================================================================

import logging
import re
from datetime import datetime
from operator import attrgetter
from typing import Any, Callable, Dict, Iterable, List, Optional

from caceres_store.config import (
    CANCELLED_ORDER_STATUSES,
    CATEGORY_CARD_LIMIT,
    COMPLETED_ORDER_STATUSES,
    LOW_STOCK_CARD_LIMIT,
    LOW_STOCK_LIST_LIMIT,
    LOW_STOCK_THRESHOLD,
    PAID_PAYMENT_STATUSES,
    PAYMENT_METHOD_LABELS,
    PENDING_ORDER_STATUS,
    TOP_PRODUCTS_LIMIT,
)
from caceres_store.models import (
    CategoryBreakdown,
    DashboardMetrics,
    DashboardSummary,
    ErrorKind,
    InventorySummary,
    LowStockProduct,
    Order,
    PaymentBreakdown,
    Product,
    Result,
    RevenuePoint,
    SubcategoryBreakdown,
    TopProduct,
)

logger = logging.getLogger(__name__)

UNKNOWN_PERIOD = 'unknown'
UNKNOWN_PERIOD_LABEL = 'Sin Fecha'
NO_CATEGORY = 'Sin categoría'
OTHER_PAYMENT_LABEL = 'Otros'

# fromisoformat (< 3.11) solo acepta 3 o 6 dígitos de fracción
FRACTION_PATTERN = re.compile(r"\.(\d+)")

SPANISH_MONTHS = [
    'enero', 'febrero', 'marzo', 'abril', 'mayo', 'junio',
    'julio', 'agosto', 'septiembre', 'octubre', 'noviembre', 'diciembre',
]


# ═══════════════════════════════════════════════════════════════════════════════
# AUXILIARES
# ═══════════════════════════════════════════════════════════════════════════════

def is_order_paid(order: Order) -> bool:
    payment_status = (order.payment_status or '').upper()
    status = (order.status or '').lower()
    return payment_status in PAID_PAYMENT_STATUSES or status in COMPLETED_ORDER_STATUSES


def normalize_payment_method(method: Optional[str]) -> str:
    """Agrupa sinónimos: credit → credit-debit, contra-entrega → cash, nulo → other."""
    if not method:
        return 'other'
    if method in ('credit', 'credit-debit'):
        return 'credit-debit'
    if method in ('cash', 'contra-entrega'):
        return 'cash'
    return method.lower()


def period_key(created_at: Optional[str]) -> str:
    """
    Clave de mes 'YYYY-MM' a partir de una fecha ISO.

    Una fecha que no se puede parsear va al bucket 'unknown' (se registra).
    """
    try:
        text = FRACTION_PATTERN.sub(
            lambda m: '.' + m.group(1)[:6].ljust(6, '0'), created_at.replace('Z', '+00:00'), count=1
        )
        parsed = datetime.fromisoformat(text)
        return f"{parsed.year:04d}-{parsed.month:02d}"
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning("Fecha no válida en pedido para métricas: %r (%s)", created_at, e)
        return UNKNOWN_PERIOD


def period_label(key: str) -> str:
    """'2024-03' → 'marzo 2024'; 'unknown' → 'Sin Fecha'."""
    if key == UNKNOWN_PERIOD:
        return UNKNOWN_PERIOD_LABEL
    try:
        year, month = (int(part) for part in key.split('-'))
        return f"{SPANISH_MONTHS[month - 1]} {year}"
    except (ValueError, IndexError):
        return key


def category_label(product: Product) -> str:
    parent = product.parent_category
    child = product.child_category
    if parent and child and parent.id != child.id:
        return f"{parent.name} / {child.name}"
    return (child.name if child else '') or (parent.name if parent else '') or product.console


# ═══════════════════════════════════════════════════════════════════════════════
# CÁLCULO PRINCIPAL
# ═══════════════════════════════════════════════════════════════════════════════

def compute_dashboard_metrics(
    orders: Iterable[Order],
    products: Iterable[Product],
    low_stock_threshold: int = LOW_STOCK_THRESHOLD,
    top_products_limit: int = TOP_PRODUCTS_LIMIT,
    low_stock_list_limit: int = LOW_STOCK_LIST_LIMIT,
) -> DashboardMetrics:
    """
    Calcula todas las métricas del dashboard en memoria.

    No hace E/S ni lanza excepciones: montos y cantidades nulos cuentan
    como 0; pedidos con producto desconocido solo suman en la tendencia,
    el resumen y los métodos de pago.

    Args:
        orders: Todos los pedidos
        products: Productos con parent_category / child_category resueltos
        low_stock_threshold: stock <= umbral cuenta como bajo
        top_products_limit: Tamaño del top de productos
        low_stock_list_limit: Productos con poco stock en el resumen de inventario

    Returns:
        DashboardMetrics
    """
    orders = list(orders)
    products = list(products)
    product_map = {p.id: p for p in products}

    paid_orders = [o for o in orders if is_order_paid(o)]

    summary = DashboardSummary(
        pending_orders=sum(
            1 for o in orders if (o.status or '').lower() == PENDING_ORDER_STATUS
        ),
        cancelled_orders=sum(
            1 for o in orders if (o.status or '').lower() in CANCELLED_ORDER_STATUSES
        ),
    )

    trend: Dict[str, RevenuePoint] = {}
    by_category: Dict[str, CategoryBreakdown] = {}
    by_subcategory: Dict[str, SubcategoryBreakdown] = {}
    by_payment: Dict[str, PaymentBreakdown] = {}
    by_product: Dict[str, TopProduct] = {}

    for order in paid_orders:
        amount = order.total_amount or 0.0
        quantity = order.quantity or 0

        summary.total_revenue += amount
        summary.total_orders += 1

        # Tendencia por mes
        key = period_key(order.created_at)
        point = trend.get(key)
        if point is None:
            point = trend[key] = RevenuePoint(period=key, label=period_label(key))
        point.revenue += amount
        point.orders += 1

        # Categoría / subcategoría / producto (solo productos conocidos)
        product = product_map.get(order.product_id)
        if product is not None:
            cat_name = (product.parent_category.name if product.parent_category else '') or NO_CATEGORY
            sub_name = (product.child_category.name if product.child_category else '') or cat_name
            cat_key = cat_name.lower()
            sub_key = f"{cat_key}::{sub_name.lower()}"

            cat_entry = by_category.get(cat_key)
            if cat_entry is None:
                cat_entry = by_category[cat_key] = CategoryBreakdown(key=cat_key, name=cat_name)
            cat_entry.revenue += amount
            cat_entry.orders += 1
            cat_entry.quantity += quantity

            sub_entry = by_subcategory.get(sub_key)
            if sub_entry is None:
                sub_entry = by_subcategory[sub_key] = SubcategoryBreakdown(
                    key=sub_key, name=sub_name, category=cat_name
                )
            sub_entry.revenue += amount
            sub_entry.orders += 1
            sub_entry.quantity += quantity

            sales = by_product.get(product.id)
            if sales is None:
                sales = by_product[product.id] = TopProduct(
                    product_id=product.id,
                    name=product.name,
                    category_label=category_label(product),
                )
            sales.revenue += amount
            sales.orders += 1
            sales.quantity += quantity

        # Método de pago
        method = normalize_payment_method(order.payment_method)
        pay_entry = by_payment.get(method)
        if pay_entry is None:
            label = PAYMENT_METHOD_LABELS.get(method) or order.payment_method or OTHER_PAYMENT_LABEL
            pay_entry = by_payment[method] = PaymentBreakdown(method=method, label=label)
        pay_entry.revenue += amount
        pay_entry.orders += 1

    summary.avg_order_value = (
        summary.total_revenue / summary.total_orders if summary.total_orders else 0.0
    )

    # Stock del producto ACTUAL (no del momento de la compra)
    for sales in by_product.values():
        source = product_map[sales.product_id]
        sales.stock_count = source.stock_count or 0
        sales.in_stock = bool(source.in_stock)

    low_stock = []
    for product in products:
        stock = product.stock_count or 0
        if not product.in_stock or stock <= low_stock_threshold:
            sales = by_product.get(product.id)
            low_stock.append(LowStockProduct(
                product_id=product.id,
                name=product.name,
                category_label=category_label(product),
                stock_count=stock,
                in_stock=bool(product.in_stock),
                price=product.price or 0.0,
                revenue=sales.revenue if sales else 0.0,
                orders=sales.orders if sales else 0,
                quantity=sales.quantity if sales else 0,
            ))
    low_stock.sort(key=lambda p: (p.stock_count, p.revenue))

    inventory = InventorySummary(
        total_products=len(products),
        low_stock_count=len(low_stock),
        # Por conteo, sin mirar in_stock
        out_of_stock_count=sum(1 for p in products if (p.stock_count or 0) == 0),
        total_inventory_value=sum((p.stock_count or 0) * (p.price or 0.0) for p in products),
        low_stock_products=low_stock[:low_stock_list_limit],
    )

    by_revenue = attrgetter('revenue')

    return DashboardMetrics(
        summary=summary,
        revenue_trend=sorted(trend.values(), key=lambda p: p.period),
        sales_by_category=sorted(by_category.values(), key=by_revenue, reverse=True),
        sales_by_subcategory=sorted(by_subcategory.values(), key=by_revenue, reverse=True),
        payment_breakdown=sorted(by_payment.values(), key=by_revenue, reverse=True),
        top_products=sorted(by_product.values(), key=by_revenue, reverse=True)[:top_products_limit],
        low_stock_products=low_stock,
        inventory=inventory,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIO
# ═══════════════════════════════════════════════════════════════════════════════

class DashboardService:
    """
    Servicio del dashboard de administración.

    Los datos se obtienen con loaders inyectados (no acoplado a JSON):
        order_loader()   → List[Order]
        product_loader() → List[Product] con categorías resueltas
    """

    def __init__(
        self,
        order_loader: Callable[[], List[Order]] = None,
        product_loader: Callable[[], List[Product]] = None
    ):
        self._order_loader = order_loader
        self._product_loader = product_loader

    def get_metrics(self) -> Result[DashboardMetrics]:
        try:
            orders = self._order_loader() if self._order_loader else []
            products = self._product_loader() if self._product_loader else []
        except OSError as e:
            logger.error("No se pudieron cargar pedidos/productos para el dashboard: %s", e)
            return Result.failure(ErrorKind.STORAGE, 'No se pudieron cargar los datos del dashboard')
        return Result.success(compute_dashboard_metrics(orders, products))

    def get_dashboard_cards(self) -> Result[Dict[str, Any]]:
        """Métricas completas + recortes para cada tarjeta del dashboard."""
        result = self.get_metrics()
        if not result.ok:
            return result
        metrics = result.value
        cards = {
            'summary': metrics.summary.to_dict(),
            'revenue_trend': [p.to_dict() for p in metrics.revenue_trend],
            'categories': [c.to_dict() for c in metrics.sales_by_category[:CATEGORY_CARD_LIMIT]],
            'subcategories': [
                s.to_dict() for s in metrics.sales_by_subcategory[:CATEGORY_CARD_LIMIT]
            ],
            'payment_breakdown': [p.to_dict() for p in metrics.payment_breakdown],
            'top_products': [p.to_dict() for p in metrics.top_products],
            'low_stock': [p.to_dict() for p in metrics.low_stock_products[:LOW_STOCK_CARD_LIMIT]],
            'inventory': metrics.inventory.to_dict(),
        }
        return Result.success(cards)
