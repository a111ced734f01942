# ==============================================================================
# RESULTADO DE OPERACIONES - Result[T] + ErrorKind
# ==============================================================================
# Los servicios NO lanzan excepciones hacia las rutas: devuelven un Result.
# La ruta decide si mostrar, reintentar o ignorar el error.
# ==============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar('T')


class ErrorKind(str, Enum):
    """Tipos de error en los límites de los componentes."""
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    EXPIRED = "EXPIRED"
    STORAGE = "STORAGE"


# Código HTTP por tipo de error (usado por main.py)
HTTP_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.EXPIRED: 401,
    ErrorKind.STORAGE: 503,
}


@dataclass
class Result(Generic[T]):
    """
    Resultado de una operación: valor o error.

    Attributes:
        value: Valor producido (si ok)
        error: Tipo de error (si falló)
        message: Mensaje legible para el usuario
        details: Información adicional (ej: avisos de ajuste del carrito)
    """
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ''
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T = None, message: str = '', **details) -> 'Result[T]':
        return cls(value=value, message=message, details=details)

    @classmethod
    def failure(cls, error: ErrorKind, message: str, **details) -> 'Result[T]':
        return cls(error=error, message=message, details=details)

    @property
    def http_status(self) -> int:
        if self.ok:
            return 200
        return HTTP_STATUS.get(self.error, 500)

    def to_dict(self) -> Dict[str, Any]:
        """Formato de respuesta JSON ({'ok': bool, 'error': str, ...})."""
        if self.ok:
            data = {'ok': True}
            if self.message:
                data['mensaje'] = self.message
        else:
            data = {
                'ok': False,
                'error': self.message,
                'error_kind': self.error.value,
            }
        data.update(self.details)
        return data
