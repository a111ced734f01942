# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Las rutas Flask solo traducen request/response; las reglas viven aquí.
# Los servicios dependen de las interfaces de repositorio, no del JSON.
# ==============================================================================

from .category_service import (
    CategoryService,
    aggregate_product_counts,
    build_tree,
    ensure_children,
    filter_tree,
    slugify,
)
from .dashboard_service import DashboardService, compute_dashboard_metrics
from .product_service import ProductService
from .cart_service import CartService, cart_totals, reconcile_against_stock, shipping_cost
from .order_service import OrderService
from .admin_service import AdminAuthService

__all__ = [
    'CategoryService',
    'aggregate_product_counts',
    'build_tree',
    'ensure_children',
    'filter_tree',
    'slugify',
    'DashboardService',
    'compute_dashboard_metrics',
    'ProductService',
    'CartService',
    'cart_totals',
    'reconcile_against_stock',
    'shipping_cost',
    'OrderService',
    'AdminAuthService',
]
