# ==============================================================================
# MÉTRICAS DEL DASHBOARD - Vistas derivadas (no se persisten)
# ==============================================================================
# Cada bucket se crea la primera vez que aparece su clave y luego se acumula.
# Los montos se redondean a 2 decimales solo al serializar.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class RevenuePoint:
    """Ingresos de un mes ('YYYY-MM') o del bucket 'unknown'."""
    period: str
    label: str
    revenue: float = 0.0
    orders: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period': self.period,
            'label': self.label,
            'revenue': round(self.revenue, 2),
            'orders': self.orders,
        }


@dataclass
class CategoryBreakdown:
    """Ventas acumuladas por categoría padre."""
    key: str
    name: str
    revenue: float = 0.0
    orders: int = 0
    quantity: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'name': self.name,
            'revenue': round(self.revenue, 2),
            'orders': self.orders,
            'quantity': self.quantity,
        }


@dataclass
class SubcategoryBreakdown:
    """Ventas por subcategoría (clave compuesta padre::hijo)."""
    key: str
    name: str
    category: str
    revenue: float = 0.0
    orders: int = 0
    quantity: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'name': self.name,
            'category': self.category,
            'revenue': round(self.revenue, 2),
            'orders': self.orders,
            'quantity': self.quantity,
        }


@dataclass
class PaymentBreakdown:
    """Ventas por método de pago normalizado."""
    method: str
    label: str
    revenue: float = 0.0
    orders: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'label': self.label,
            'revenue': round(self.revenue, 2),
            'orders': self.orders,
        }


@dataclass
class TopProduct:
    """
    Ventas por producto.

    stock_count / in_stock vienen del producto ACTUAL, no del pedido.
    """
    product_id: str
    name: str
    category_label: str = ''
    revenue: float = 0.0
    orders: int = 0
    quantity: int = 0
    stock_count: int = 0
    in_stock: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'category_label': self.category_label,
            'revenue': round(self.revenue, 2),
            'orders': self.orders,
            'quantity': self.quantity,
            'stock_count': self.stock_count,
            'in_stock': self.in_stock,
        }


@dataclass
class LowStockProduct:
    product_id: str
    name: str
    category_label: str = ''
    stock_count: int = 0
    in_stock: bool = False
    price: float = 0.0
    revenue: float = 0.0
    orders: int = 0
    quantity: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'category_label': self.category_label,
            'stock_count': self.stock_count,
            'in_stock': self.in_stock,
            'price': round(self.price, 2),
            'revenue': round(self.revenue, 2),
            'orders': self.orders,
            'quantity': self.quantity,
        }


@dataclass
class InventorySummary:
    """Resumen de inventario sobre TODOS los productos."""
    total_products: int = 0
    low_stock_count: int = 0
    out_of_stock_count: int = 0
    total_inventory_value: float = 0.0
    low_stock_products: List[LowStockProduct] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_products': self.total_products,
            'low_stock_count': self.low_stock_count,
            'out_of_stock_count': self.out_of_stock_count,
            'total_inventory_value': round(self.total_inventory_value, 2),
            'low_stock_products': [p.to_dict() for p in self.low_stock_products],
        }


@dataclass
class DashboardSummary:
    total_revenue: float = 0.0
    total_orders: int = 0
    avg_order_value: float = 0.0
    pending_orders: int = 0
    cancelled_orders: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_revenue': round(self.total_revenue, 2),
            'total_orders': self.total_orders,
            'avg_order_value': round(self.avg_order_value, 2),
            'pending_orders': self.pending_orders,
            'cancelled_orders': self.cancelled_orders,
        }


@dataclass
class DashboardMetrics:
    """Resultado completo de compute_dashboard_metrics."""
    summary: DashboardSummary = field(default_factory=DashboardSummary)
    revenue_trend: List[RevenuePoint] = field(default_factory=list)
    sales_by_category: List[CategoryBreakdown] = field(default_factory=list)
    sales_by_subcategory: List[SubcategoryBreakdown] = field(default_factory=list)
    payment_breakdown: List[PaymentBreakdown] = field(default_factory=list)
    top_products: List[TopProduct] = field(default_factory=list)
    low_stock_products: List[LowStockProduct] = field(default_factory=list)
    inventory: InventorySummary = field(default_factory=InventorySummary)

    def trend_bucket(self, period: str) -> Optional[RevenuePoint]:
        for point in self.revenue_trend:
            if point.period == period:
                return point
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary.to_dict(),
            'revenue_trend': [p.to_dict() for p in self.revenue_trend],
            'sales_by_category': [c.to_dict() for c in self.sales_by_category],
            'sales_by_subcategory': [s.to_dict() for s in self.sales_by_subcategory],
            'payment_breakdown': [p.to_dict() for p in self.payment_breakdown],
            'top_products': [p.to_dict() for p in self.top_products],
            'low_stock_products': [p.to_dict() for p in self.low_stock_products],
            'inventory': self.inventory.to_dict(),
        }
