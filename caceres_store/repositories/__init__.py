# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Encapsula la persistencia (actualmente JSON).
#
# ESTRUCTURA:
# ├── interfaces.py            → Protocolos (contratos de consulta)
# ├── base.py                  → BaseRepository / ListRepository (JSON)
# ├── category_repository.py   → categories.json
# ├── product_repository.py    → products.json
# └── order_repository.py      → orders.json
# ==============================================================================

from .interfaces import (
    ICategoryRepository,
    IProductRepository,
    IOrderRepository,
)

from .base import BaseRepository, ListRepository
from .category_repository import CategoryRepository
from .product_repository import ProductRepository
from .order_repository import OrderRepository

__all__ = [
    # Interfaces
    'ICategoryRepository',
    'IProductRepository',
    'IOrderRepository',

    # Clases base
    'BaseRepository',
    'ListRepository',

    # Implementaciones JSON
    'CategoryRepository',
    'ProductRepository',
    'OrderRepository',
]
