from flask import Flask, Blueprint, request, session, g
from functools import wraps
import logging

from caceres_store.config import Config, PRODUCTION_MODE, DELIVERY_POINTS, CURRENCY

# ═══════════════════════════════════════════════════════════════════════════
# CONTENEDOR DE DEPENDENCIAS - Servicios y Repositorios
# ═══════════════════════════════════════════════════════════════════════════
# Las rutas solo traducen request/response; la lógica vive en services/.
# ═══════════════════════════════════════════════════════════════════════════
from caceres_store.app_container import AppContainer, get_container
from caceres_store.models import (
    Cart,
    CategoryNode,
    CustomerInfo,
    DeliveryInfo,
    DeliveryType,
    ErrorKind,
    Result,
)
from caceres_store.services import cart_totals, filter_tree

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__, url_prefix='/api')

CART_KEY = 'carrito'
ADMIN_KEY = 'admin_session'


def respond(result: Result, **payload):
    """Result → (JSON, status). payload solo se agrega si la operación fue ok."""
    data = result.to_dict()
    if result.ok:
        data.update(payload)
    return data, result.http_status


def to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


# ═══════════════════════════════════════════════════════════════════════════
# CARRITO EN SESIÓN
# ═══════════════════════════════════════════════════════════════════════════

def _get_cart() -> Cart:
    return Cart.from_list(session.get(CART_KEY, []))


def _save_cart(cart: Cart) -> None:
    session[CART_KEY] = cart.to_list()
    session.modified = True


def _cart_payload(cart: Cart, delivery_type: str = None) -> dict:
    delivery_type = delivery_type or request.args.get('delivery_type') or DeliveryType.PICKUP.value
    return {
        'items': cart.to_list(),
        'currency': CURRENCY,
        **cart_totals(cart, delivery_type),
    }


# ═══════════════════════════════════════════════════════════════════════════
# SESIÓN DE ADMIN
# ═══════════════════════════════════════════════════════════════════════════

def admin_required(f):
    """Exige una AdminSession vigente; la deja en g.admin_session."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        result = get_container().admin_service.validate(session.get(ADMIN_KEY))
        if not result.ok:
            session.pop(ADMIN_KEY, None)
            return respond(result)
        g.admin_session = result.value
        return f(*args, **kwargs)
    return wrapper


# ═══════════════════════════════════════════════════════════════════════════
# API: CATÁLOGO
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/categories', methods=['GET'])
def api_categories():
    """Árbol de navegación (opcional ?q= para buscar)."""
    result = get_container().category_service.get_navigation_tree()
    if not result.ok:
        return respond(result)
    tree = filter_tree(result.value, request.args.get('q', ''))
    return respond(result, categories=[node.to_dict() for node in tree])


@api.route('/categories/<category_id>/children', methods=['GET'])
def api_category_children(category_id):
    result = get_container().category_service.get_node(category_id)
    if not result.ok:
        return respond(result)
    node: CategoryNode = result.value
    return respond(result, category=node.to_dict())


@api.route('/products', methods=['GET'])
def api_products():
    result = get_container().product_service.list_storefront(
        category=request.args.get('category'),
        query=request.args.get('q'),
    )
    if not result.ok:
        return respond(result)
    return respond(result, products=[p.to_dict() for p in result.value])


# ═══════════════════════════════════════════════════════════════════════════
# API: CARRITO (session-based)
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/cart', methods=['GET'])
def api_cart():
    return respond(Result.success(), cart=_cart_payload(_get_cart()))


@api.route('/cart/add', methods=['POST'])
def api_cart_add():
    """Espera JSON con: id, quantity (opcional, 1 por defecto)."""
    data = request.get_json(silent=True) or {}
    result = get_container().cart_service.add_item(
        _get_cart(), str(data.get('id') or ''), to_int(data.get('quantity'), 1)
    )
    if not result.ok:
        return respond(result)
    _save_cart(result.value)
    return respond(result, cart=_cart_payload(result.value))


@api.route('/cart/update', methods=['POST'])
def api_cart_update():
    data = request.get_json(silent=True) or {}
    result = get_container().cart_service.update_quantity(
        _get_cart(), str(data.get('id') or ''), to_int(data.get('quantity'), 0)
    )
    if not result.ok:
        return respond(result)
    _save_cart(result.value)
    return respond(result, cart=_cart_payload(result.value))


@api.route('/cart/remove', methods=['POST'])
def api_cart_remove():
    data = request.get_json(silent=True) or {}
    result = get_container().cart_service.remove_item(_get_cart(), str(data.get('id') or ''))
    if not result.ok:
        return respond(result)
    _save_cart(result.value)
    return respond(result, cart=_cart_payload(result.value))


@api.route('/cart/clear', methods=['POST'])
def api_cart_clear():
    result = get_container().cart_service.clear()
    _save_cart(result.value)
    return respond(result, cart=_cart_payload(result.value))


@api.route('/cart/reconcile', methods=['POST'])
def api_cart_reconcile():
    """Ajusta el carrito al stock actual y devuelve los avisos."""
    result = get_container().cart_service.reconcile(_get_cart())
    if not result.ok:
        return respond(result)
    adjusted, notices = result.value
    _save_cart(adjusted)
    return respond(
        result,
        cart=_cart_payload(adjusted),
        notices=[n.to_dict() for n in notices],
    )


# ═══════════════════════════════════════════════════════════════════════════
# API: CHECKOUT Y PAGOS
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/delivery-points', methods=['GET'])
def api_delivery_points():
    points = [{'id': key, 'name': name} for key, name in DELIVERY_POINTS.items()]
    return respond(Result.success(), delivery_points=points)


@api.route('/checkout', methods=['POST'])
def api_checkout():
    """
    Espera JSON con: customer {first_name, last_name, email, phone},
    delivery {delivery_type, delivery_point | department, municipality,
    address, reference_point, map_location}, payment_method ('cash'|'card').
    """
    data = request.get_json(silent=True) or {}
    result = get_container().order_service.checkout(
        _get_cart(),
        CustomerInfo.from_dict(data.get('customer') or {}),
        DeliveryInfo.from_dict(data.get('delivery') or {}),
        data.get('payment_method') or '',
    )
    if not result.ok:
        # El carrito ajustado queda en sesión para que el cliente lo revise
        if result.error == ErrorKind.CONFLICT and 'cart' in result.details:
            _save_cart(Cart.from_list(result.details['cart']))
        return respond(result)

    _save_cart(Cart())
    return respond(result, order=result.value.to_dict())


@api.route('/webhooks/payment', methods=['POST'])
def api_payment_webhook():
    """Notificación de la pasarela: JSON con reference, status, transaction_id."""
    data = request.get_json(silent=True) or {}
    result = get_container().order_service.apply_payment_update(
        data.get('reference') or '',
        data.get('status') or '',
        data.get('transaction_id'),
    )
    if not result.ok:
        return respond(result)
    order = result.value
    return respond(result, order_id=order.id, payment_status=order.payment_status)


# ═══════════════════════════════════════════════════════════════════════════
# API: ADMIN
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/admin/login', methods=['POST'])
def api_admin_login():
    data = request.get_json(silent=True) or {}
    result = get_container().admin_service.login(data.get('email'), data.get('password'))
    if not result.ok:
        return respond(result)
    session[ADMIN_KEY] = result.value.to_dict()
    return respond(result, admin=result.value.to_dict())


@api.route('/admin/logout', methods=['POST'])
def api_admin_logout():
    session.pop(ADMIN_KEY, None)
    return respond(Result.success(message='Sesión cerrada'))


@api.route('/admin/refresh', methods=['POST'])
@admin_required
def api_admin_refresh():
    result = get_container().admin_service.refresh(g.admin_session)
    if not result.ok:
        return respond(result)
    session[ADMIN_KEY] = result.value.to_dict()
    return respond(result, admin=result.value.to_dict())


@api.route('/admin/dashboard', methods=['GET'])
@admin_required
def api_admin_dashboard():
    result = get_container().dashboard_service.get_dashboard_cards()
    if not result.ok:
        return respond(result)
    return respond(result, dashboard=result.value)


@api.route('/admin/categories', methods=['GET'])
@admin_required
def api_admin_categories():
    result = get_container().category_service.get_admin_overview()
    if not result.ok:
        return respond(result)
    return respond(result, categories=result.value)


@api.route('/admin/categories', methods=['POST'])
@admin_required
def api_admin_add_category():
    data = request.get_json(silent=True) or {}
    result = get_container().category_service.add_category(
        data.get('name'),
        parent_id=data.get('parent_id') or None,
        sort_order=to_int(data.get('sort_order')),
    )
    if not result.ok:
        return respond(result)
    return respond(result, category=result.value.to_dict())


@api.route('/admin/categories/<category_id>/toggle', methods=['POST'])
@admin_required
def api_admin_toggle_category(category_id):
    result = get_container().category_service.toggle_active(category_id)
    if not result.ok:
        return respond(result)
    return respond(result, category=result.value.to_dict())


@api.route('/admin/categories/<category_id>/delete', methods=['POST'])
@admin_required
def api_admin_delete_category(category_id):
    return respond(get_container().category_service.delete_category(category_id))


@api.route('/admin/orders', methods=['GET'])
@admin_required
def api_admin_orders():
    result = get_container().order_service.list_orders()
    if not result.ok:
        return respond(result)
    return respond(result, orders=[o.to_dict() for o in result.value])


@api.route('/admin/orders/<order_id>/status', methods=['POST'])
@admin_required
def api_admin_order_status(order_id):
    data = request.get_json(silent=True) or {}
    result = get_container().order_service.update_status(order_id, data.get('status'))
    if not result.ok:
        return respond(result)
    return respond(result, order=result.value.to_dict())


# ═══════════════════════════════════════════════════════════════════════════
# APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


def create_app(data_dir: str = None) -> Flask:
    """
    Crea la aplicación Flask.

    Args:
        data_dir: Directorio de los JSON (por defecto STORE_DATA_DIR).
                  Reinicia el contenedor global: una app por proceso.
    """
    app = Flask(__name__)

    # SECRET_KEY: En producción DEBE definirse via STORE_SECRET_KEY
    if not Config.SECRET_KEY:
        if PRODUCTION_MODE:
            logger.warning("STORE_PRODUCTION activo sin STORE_SECRET_KEY definida")
        else:
            logger.warning("STORE_SECRET_KEY no definida; se usa la clave de desarrollo")
    if not Config.ADMIN_PASSWORD_HASH and Config.ADMIN_PASSWORD == Config.DEFAULT_ADMIN_PASSWORD:
        logger.warning("Contraseña de admin por defecto en uso; define STORE_ADMIN_PASSWORD_HASH")
    app.secret_key = Config.SECRET_KEY or Config.DEFAULT_SECRET_KEY

    AppContainer.reset_instance()
    get_container(data_dir)

    app.register_blueprint(api)
    app.after_request(set_security_headers)
    return app
