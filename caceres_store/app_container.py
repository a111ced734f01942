# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único para obtener repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (se reinicia con reset_instance y un directorio temporal)
#   - Cambiar el almacenamiento sin tocar servicios
# ==============================================================================

from typing import Optional

from werkzeug.security import generate_password_hash

from caceres_store.config import Config

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia (JSON)
# ═══════════════════════════════════════════════════════════════════════════════
from caceres_store.repositories import (
    CategoryRepository,
    ProductRepository,
    OrderRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from caceres_store.services import (
    CategoryService,
    DashboardService,
    ProductService,
    CartService,
    OrderService,
    AdminAuthService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación (singleton, carga diferida).

    Uso:
        container = AppContainer(data_dir='/ruta/a/data')
        category_service = container.category_service
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, data_dir: str = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, data_dir: str = None):
        """
        Args:
            data_dir: Directorio de los JSON (por defecto STORE_DATA_DIR)
        """
        if self._initialized:
            return

        self._data_dir = data_dir or Config.DATA_DIR
        self.reset()
        self._initialized = True

    @property
    def data_dir(self) -> str:
        return self._data_dir

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def category_repo(self) -> CategoryRepository:
        if self._category_repo is None:
            self._category_repo = CategoryRepository(self._data_dir)
        return self._category_repo

    @property
    def product_repo(self) -> ProductRepository:
        if self._product_repo is None:
            self._product_repo = ProductRepository(self._data_dir)
        return self._product_repo

    @property
    def order_repo(self) -> OrderRepository:
        if self._order_repo is None:
            self._order_repo = OrderRepository(self._data_dir)
        return self._order_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def category_service(self) -> CategoryService:
        if self._category_service is None:
            self._category_service = CategoryService(self.category_repo, self.product_repo)
        return self._category_service

    @property
    def product_service(self) -> ProductService:
        if self._product_service is None:
            self._product_service = ProductService(self.product_repo, self.category_repo)
        return self._product_service

    @property
    def dashboard_service(self) -> DashboardService:
        """Servicio del dashboard (loaders: pedidos + productos con categorías)."""
        if self._dashboard_service is None:
            self._dashboard_service = DashboardService(
                order_loader=self.order_repo.get_all_orders,
                product_loader=self.product_service.get_products_with_categories,
            )
        return self._dashboard_service

    @property
    def cart_service(self) -> CartService:
        if self._cart_service is None:
            self._cart_service = CartService(
                self.product_repo,
                stock_loader=self.product_service.get_live_stock,
            )
        return self._cart_service

    @property
    def order_service(self) -> OrderService:
        if self._order_service is None:
            self._order_service = OrderService(self.order_repo, self.cart_service, self.product_repo)
        return self._order_service

    @property
    def admin_service(self) -> AdminAuthService:
        """
        Servicio de sesión de admin.

        STORE_ADMIN_PASSWORD_HASH tiene prioridad; si falta se hashea
        STORE_ADMIN_PASSWORD al crear el servicio.
        """
        if self._admin_service is None:
            password_hash = Config.ADMIN_PASSWORD_HASH or generate_password_hash(Config.ADMIN_PASSWORD)
            self._admin_service = AdminAuthService(
                Config.ADMIN_EMAIL,
                password_hash,
                Config.ADMIN_SESSION_TTL,
            )
        return self._admin_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """Reinicia todas las instancias (útil para tests o recargar datos)."""
        self._category_repo = None
        self._product_repo = None
        self._order_repo = None

        self._category_service = None
        self._product_service = None
        self._dashboard_service = None
        self._cart_service = None
        self._order_service = None
        self._admin_service = None

    @classmethod
    def get_instance(cls, data_dir: str = None) -> 'AppContainer':
        """Instancia singleton (data_dir solo se usa en la primera llamada)."""
        if cls._instance is None:
            return cls(data_dir)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container(data_dir: str = None) -> AppContainer:
    """Contenedor de dependencias global."""
    return AppContainer.get_instance(data_dir)
