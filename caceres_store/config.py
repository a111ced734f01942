# ==============================================================================
# CONFIGURACIÓN DE LA TIENDA
# ==============================================================================
# Variables de entorno + constantes de negocio centralizadas.
# Los umbrales y límites del dashboard viven AQUÍ, no en cada servicio.
# ==============================================================================

import os
import logging
from pathlib import Path

# Directorio base del paquete
BASE_DIR = Path(__file__).resolve().parent.parent


# ═══════════════════════════════════════════════════════════════════════════════
# MODO PRODUCCIÓN
# ═══════════════════════════════════════════════════════════════════════════════
# True = exige STORE_SECRET_KEY (solo advierte si falta)
PRODUCTION_MODE = os.environ.get('STORE_PRODUCTION', '0') == '1'


class Config:
    """Configuración leída del entorno (con valores por defecto para desarrollo)."""

    DATA_DIR: str = os.environ.get('STORE_DATA_DIR', str(BASE_DIR / 'data'))
    LOG_DIR: str = os.environ.get('STORE_LOG_DIR', str(BASE_DIR / 'logs'))
    LOG_LEVEL: str = os.environ.get('STORE_LOG_LEVEL', 'INFO')

    # Sesiones Flask (carrito + sesión de admin)
    SECRET_KEY: str = os.environ.get('STORE_SECRET_KEY', '')
    DEFAULT_SECRET_KEY = 'caceres_store_dev_secret_change_in_production'

    # Administrador
    ADMIN_EMAIL: str = os.environ.get('STORE_ADMIN_EMAIL', 'admin@caceresvideogames.com')
    ADMIN_PASSWORD_HASH: str = os.environ.get('STORE_ADMIN_PASSWORD_HASH', '')
    DEFAULT_ADMIN_PASSWORD = 'admin123'
    ADMIN_PASSWORD: str = os.environ.get('STORE_ADMIN_PASSWORD', DEFAULT_ADMIN_PASSWORD)
    ADMIN_SESSION_TTL: int = int(os.environ.get('STORE_ADMIN_SESSION_TTL', 8 * 3600))


# ═══════════════════════════════════════════════════════════════════════════════
# CONSTANTES DEL DASHBOARD
# ═══════════════════════════════════════════════════════════════════════════════
LOW_STOCK_THRESHOLD = 5       # stock <= 5 cuenta como "bajo"
TOP_PRODUCTS_LIMIT = 8        # productos más vendidos en las métricas
LOW_STOCK_LIST_LIMIT = 10     # productos con poco stock en el resumen de inventario
LOW_STOCK_CARD_LIMIT = 8      # tarjeta "Stock bajo"
CATEGORY_CARD_LIMIT = 10      # tarjeta de ventas por categoría/subcategoría

# Estados que cuentan como venta pagada (regla OR entre ambos campos)
PAID_PAYMENT_STATUSES = frozenset(['APPROVED', 'PAID', 'COMPLETED'])
COMPLETED_ORDER_STATUSES = frozenset(['completada', 'enviada', 'completado'])
PENDING_ORDER_STATUS = 'pendiente'
CANCELLED_ORDER_STATUSES = frozenset(['cancelada', 'cancelado'])

# Estados con el stock ya descontado (venta confirmada por pasarela o por el admin)
STOCK_COMMITTED_ORDER_STATUSES = frozenset(['confirmed']) | COMPLETED_ORDER_STATUSES

PAYMENT_METHOD_LABELS = {
    'credit-debit': 'Tarjeta',
    'cash': 'Contra Entrega',
}


# ═══════════════════════════════════════════════════════════════════════════════
# CHECKOUT
# ═══════════════════════════════════════════════════════════════════════════════
CURRENCY = 'USD'
DELIVERY_SHIPPING_COST = 4.00  # Envío a domicilio; retiro en punto de entrega es gratis

DELIVERY_POINTS = {
    'metrocentro': 'Metrocentro',
    'galerias': 'Galerías',
    'torre-futura': 'Torre Futura',
    'escalon': 'Escalón',
    'santa-tecla': 'Santa Tecla',
    'santa-elena': 'Santa Elena',
    'gran-via': 'La Gran Vía',
    'antiguo-cuscatlan': 'Antiguo Cuscatlán',
    '75-av-norte': '75 Av. Norte',
    'la-bernal': 'La Bernal',
}


def setup_logging(level: str = None, log_dir: str = None) -> None:
    """Configura logging (consola + archivo en LOG_DIR)."""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_dir = Path(log_dir or Config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO),
        format=log_format,
        handlers=[
            logging.FileHandler(log_dir / 'store.log', encoding='utf-8'),
            logging.StreamHandler(),
        ]
    )
