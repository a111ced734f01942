# ==============================================================================
# MODELOS DEL DOMINIO
# ==============================================================================
# Dataclasses que representan las entidades de la tienda y el tipo Result
# que usan los servicios en sus límites.
# ==============================================================================

from .entities import (
    DeliveryType,
    CheckoutPaymentMethod,
    NoticeKind,
    Category,
    CategoryNode,
    Product,
    OrderItem,
    Order,
    CustomerInfo,
    DeliveryInfo,
    CartItem,
    Cart,
    AdjustmentNotice,
    AdminSession,
    utc_now_iso,
)
from .metrics import (
    RevenuePoint,
    CategoryBreakdown,
    SubcategoryBreakdown,
    PaymentBreakdown,
    TopProduct,
    LowStockProduct,
    InventorySummary,
    DashboardSummary,
    DashboardMetrics,
)
from .result import ErrorKind, Result, HTTP_STATUS

__all__ = [
    # Enums
    'DeliveryType',
    'CheckoutPaymentMethod',
    'NoticeKind',

    # Entidades
    'Category',
    'CategoryNode',
    'Product',
    'OrderItem',
    'Order',
    'CustomerInfo',
    'DeliveryInfo',
    'CartItem',
    'Cart',
    'AdjustmentNotice',
    'AdminSession',
    'utc_now_iso',

    # Métricas
    'RevenuePoint',
    'CategoryBreakdown',
    'SubcategoryBreakdown',
    'PaymentBreakdown',
    'TopProduct',
    'LowStockProduct',
    'InventorySummary',
    'DashboardSummary',
    'DashboardMetrics',

    # Resultado
    'ErrorKind',
    'Result',
    'HTTP_STATUS',
]
