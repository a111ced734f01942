# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio de la tienda.
# Categorías, productos y pedidos son propiedad del almacenamiento externo:
# aquí solo se leen y se derivan vistas (nunca se mutan en los cálculos).
# ==============================================================================

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any


def _to_float(value: Any) -> Optional[float]:
    """Convierte a float; None si no es numérico."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    """Convierte a int; None si no es numérico."""
    number = _to_float(value)
    return int(number) if number is not None else None


def _to_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'si', 'sí', 'yes')
    return bool(value)


def _to_text(value: Any) -> str:
    """Texto de un formulario JSON: None → '', números → str."""
    return '' if value is None else str(value)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ==============================================================================
# ENUMERACIONES
# ==============================================================================

class DeliveryType(str, Enum):
    """Tipos de entrega disponibles."""
    PICKUP = "pickup"        # Punto de entrega (gratis)
    DELIVERY = "delivery"    # Envío a domicilio


class CheckoutPaymentMethod(str, Enum):
    """Métodos de pago que el cliente elige en el checkout."""
    CASH = "cash"   # Contra entrega
    CARD = "card"   # Tarjeta vía pasarela


class NoticeKind(str, Enum):
    """Ajustes que la reconciliación puede aplicar al carrito."""
    REMOVED_NOT_FOUND = "REMOVED_NOT_FOUND"
    REMOVED_OUT_OF_STOCK = "REMOVED_OUT_OF_STOCK"
    QUANTITY_REDUCED = "QUANTITY_REDUCED"
    PRICE_UPDATED = "PRICE_UPDATED"


# ==============================================================================
# CATEGORÍAS
# ==============================================================================

@dataclass
class Category:
    """
    Categoría del catálogo (registro externo, solo lectura).

    Attributes:
        id: Identificador opaco
        name: Nombre visible
        slug: Identificador para URLs (se deriva del nombre si falta)
        parent_id: Categoría padre; None = raíz
        sort_order: Orden opcional (menor primero)
        is_active: Las inactivas no llegan al árbol de navegación
    """
    id: str
    name: str
    slug: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: bool = True
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'parent_id': self.parent_id,
            'sort_order': self.sort_order,
            'is_active': self.is_active,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        """Crea instancia desde diccionario."""
        is_active = _to_bool(data.get('is_active'))
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name') or '',
            slug=data.get('slug') or None,
            parent_id=str(data['parent_id']) if data.get('parent_id') else None,
            sort_order=_to_int(data.get('sort_order')),
            is_active=True if is_active is None else is_active,
            created_at=data.get('created_at'),
        )


@dataclass
class CategoryNode:
    """
    Nodo del árbol de categorías (vista efímera, se recalcula en cada llamada).

    Attributes:
        children: Hijos ordenados por (sort_order, name)
    """
    id: str
    name: str
    slug: str
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    children: List['CategoryNode'] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'parent_id': self.parent_id,
            'sort_order': self.sort_order,
            'children': [child.to_dict() for child in self.children],
        }


# ==============================================================================
# PRODUCTOS
# ==============================================================================

@dataclass
class Product:
    """
    Producto del catálogo.

    Attributes:
        id: Identificador opaco
        sku: Código SKU
        name: Nombre del producto
        price: Precio de venta (USD)
        console: Plataforma (Nintendo Switch, PlayStation, ...)
        category_id: Categoría directa (normalmente una subcategoría)
        parent_category_id: Categoría padre desnormalizada
        in_stock: Bandera de disponibilidad (None = False)
        stock_count: Unidades en inventario (None = 0)
        parent_category / child_category: Asociaciones resueltas (no se persisten)
    """
    id: str
    name: str
    price: float = 0.0
    sku: str = ''
    console: str = ''
    category_id: Optional[str] = None
    parent_category_id: Optional[str] = None
    in_stock: Optional[bool] = None
    stock_count: Optional[int] = None
    description: str = ''
    image_urls: List[str] = field(default_factory=list)
    created_at: Optional[str] = None
    parent_category: Optional[Category] = None
    child_category: Optional[Category] = None

    @property
    def available(self) -> int:
        """Unidades vendibles ahora mismo (0 si está marcado como agotado)."""
        if not self.in_stock:
            return 0
        return max(0, self.stock_count or 0)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia JSON."""
        return {
            'id': self.id,
            'sku': self.sku,
            'name': self.name,
            'price': self.price,
            'console': self.console,
            'category_id': self.category_id,
            'parent_category_id': self.parent_category_id,
            'in_stock': self.in_stock,
            'stock_count': self.stock_count,
            'description': self.description,
            'image_urls': list(self.image_urls),
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        """Crea instancia desde diccionario."""
        return cls(
            id=str(data.get('id', '')),
            sku=data.get('sku') or '',
            name=data.get('name') or '',
            price=_to_float(data.get('price')) or 0.0,
            console=data.get('console') or '',
            category_id=str(data['category_id']) if data.get('category_id') else None,
            parent_category_id=(
                str(data['parent_category_id']) if data.get('parent_category_id') else None
            ),
            in_stock=_to_bool(data.get('in_stock')),
            stock_count=_to_int(data.get('stock_count')),
            description=data.get('description') or '',
            image_urls=list(data.get('image_urls') or []),
            created_at=data.get('created_at'),
        )


# ==============================================================================
# PEDIDOS
# ==============================================================================

@dataclass
class OrderItem:
    """Línea del pedido (producto, cantidad, precio al momento de la compra)."""
    product_id: str
    quantity: int
    price: float

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.product_id, 'quantity': self.quantity, 'price': self.price}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrderItem':
        return cls(
            product_id=str(data.get('id', '')),
            quantity=_to_int(data.get('quantity')) or 0,
            price=_to_float(data.get('price')) or 0.0,
        )


@dataclass
class Order:
    """
    Pedido (registro externo).

    status y payment_status son etiquetas libres que actualizan caminos
    distintos: contra entrega mueve status, la pasarela mueve payment_status.
    """
    id: str
    product_id: Optional[str] = None
    total_amount: Optional[float] = None
    quantity: Optional[int] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    customer_name: str = ''
    customer_email: str = ''
    customer_phone: str = ''
    customer_address: str = ''
    delivery_type: Optional[str] = None
    delivery_point: Optional[str] = None
    delivery_department: Optional[str] = None
    delivery_municipality: Optional[str] = None
    delivery_reference_point: Optional[str] = None
    delivery_map_location: Optional[str] = None
    payment_reference: Optional[str] = None
    payment_transaction_id: Optional[str] = None
    items: List[OrderItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'product_id': self.product_id,
            'total_amount': self.total_amount,
            'quantity': self.quantity,
            'status': self.status,
            'payment_status': self.payment_status,
            'payment_method': self.payment_method,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'customer_name': self.customer_name,
            'customer_email': self.customer_email,
            'customer_phone': self.customer_phone,
            'customer_address': self.customer_address,
            'delivery_type': self.delivery_type,
            'delivery_point': self.delivery_point,
            'delivery_department': self.delivery_department,
            'delivery_municipality': self.delivery_municipality,
            'delivery_reference_point': self.delivery_reference_point,
            'delivery_map_location': self.delivery_map_location,
            'payment_reference': self.payment_reference,
            'payment_transaction_id': self.payment_transaction_id,
            'cart_items': [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Order':
        """Crea instancia desde diccionario (tolera campos faltantes o nulos)."""
        return cls(
            id=str(data.get('id', '')),
            product_id=str(data['product_id']) if data.get('product_id') else None,
            total_amount=_to_float(data.get('total_amount')),
            quantity=_to_int(data.get('quantity')),
            status=data.get('status'),
            payment_status=data.get('payment_status'),
            payment_method=data.get('payment_method'),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
            customer_name=data.get('customer_name') or '',
            customer_email=data.get('customer_email') or '',
            customer_phone=data.get('customer_phone') or '',
            customer_address=data.get('customer_address') or '',
            delivery_type=data.get('delivery_type'),
            delivery_point=data.get('delivery_point'),
            delivery_department=data.get('delivery_department'),
            delivery_municipality=data.get('delivery_municipality'),
            delivery_reference_point=data.get('delivery_reference_point'),
            delivery_map_location=data.get('delivery_map_location'),
            payment_reference=data.get('payment_reference'),
            payment_transaction_id=data.get('payment_transaction_id'),
            items=[OrderItem.from_dict(i) for i in data.get('cart_items') or []],
        )


@dataclass
class CustomerInfo:
    """Datos personales del checkout."""
    first_name: str = ''
    last_name: str = ''
    email: str = ''
    phone: str = ''

    @property
    def full_name(self) -> str:
        return f"{self.first_name.strip()} {self.last_name.strip()}".strip()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CustomerInfo':
        return cls(
            first_name=_to_text(data.get('first_name')),
            last_name=_to_text(data.get('last_name')),
            email=_to_text(data.get('email')),
            phone=_to_text(data.get('phone')),
        )


@dataclass
class DeliveryInfo:
    """Datos de entrega: punto de retiro o domicilio."""
    delivery_type: str = DeliveryType.PICKUP.value
    delivery_point: str = ''
    department: str = ''
    municipality: str = ''
    address: str = ''
    reference_point: str = ''
    map_location: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeliveryInfo':
        return cls(
            delivery_type=_to_text(data.get('delivery_type')) or DeliveryType.PICKUP.value,
            delivery_point=_to_text(data.get('delivery_point')),
            department=_to_text(data.get('department')),
            municipality=_to_text(data.get('municipality')),
            address=_to_text(data.get('address')),
            reference_point=_to_text(data.get('reference_point')),
            map_location=_to_text(data.get('map_location')),
        )


# ==============================================================================
# CARRITO
# ==============================================================================

@dataclass
class CartItem:
    """
    Ítem en el carrito.

    Attributes:
        product_id: ID del producto
        name: Nombre mostrado
        price: Precio unitario al agregar
        quantity: Cantidad
        image: Imagen principal
        console: Plataforma
    """
    product_id: str
    name: str
    price: float
    quantity: int = 1
    image: str = ''
    console: str = ''

    @property
    def subtotal(self) -> float:
        return round(self.price * self.quantity, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.product_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
            'image': self.image,
            'console': self.console,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        return cls(
            product_id=str(data.get('id', '')),
            name=data.get('name') or '',
            price=_to_float(data.get('price')) or 0.0,
            quantity=_to_int(data.get('quantity')) or 0,
            image=data.get('image') or '',
            console=data.get('console') or '',
        )


@dataclass
class Cart:
    """Agregado del carrito: lista de ítems + totales derivados."""
    items: List[CartItem] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> float:
        return round(sum(item.price * item.quantity for item in self.items), 2)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def get_item(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def copy(self) -> 'Cart':
        return Cart(items=[CartItem(**vars(item)) for item in self.items])

    def to_list(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in self.items]

    @classmethod
    def from_list(cls, data: List[Dict[str, Any]]) -> 'Cart':
        return cls(items=[CartItem.from_dict(i) for i in data or []])


@dataclass
class AdjustmentNotice:
    """Aviso generado al reconciliar el carrito con el stock real."""
    product_id: str
    name: str
    kind: NoticeKind
    requested: int = 0
    available: int = 0
    message: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'kind': self.kind.value,
            'requested': self.requested,
            'available': self.available,
            'message': self.message,
        }


# ==============================================================================
# SESIÓN DE ADMINISTRADOR
# ==============================================================================

@dataclass
class AdminSession:
    """
    Sesión explícita del administrador (con expiración).

    Attributes:
        admin_id: Identificador del administrador
        email: Correo con el que inició sesión
        issued_at: Emisión (UTC)
        expires_at: Expiración (UTC)
    """
    admin_id: str
    email: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            'admin_id': self.admin_id,
            'email': self.email,
            'issued_at': self.issued_at.isoformat(),
            'expires_at': self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AdminSession':
        """Crea instancia desde diccionario. Lanza KeyError/ValueError si está mal formado."""
        return cls(
            admin_id=str(data['admin_id']),
            email=str(data['email']),
            issued_at=datetime.fromisoformat(data['issued_at']),
            expires_at=datetime.fromisoformat(data['expires_at']),
        )
