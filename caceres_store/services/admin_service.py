# ==============================================================================
# SERVICIO DE SESIÓN DE ADMINISTRADOR
# ==============================================================================
# La sesión del admin es un objeto explícito con expiración: la ruta la
# guarda serializada en la sesión de Flask y la valida en cada request.
# ==============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from werkzeug.security import check_password_hash

from caceres_store.models import AdminSession, ErrorKind, Result

logger = logging.getLogger(__name__)

HASH_PREFIXES = ('pbkdf2:', 'scrypt:')


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AdminAuthService:
    """
    Autenticación del administrador de la tienda.

    Responsabilidades:
    - login: verifica credenciales y emite una AdminSession
    - validate: reconstruye la sesión guardada y revisa expiración
    - refresh: extiende una sesión vigente
    """

    ADMIN_ID = 'admin'

    def __init__(
        self,
        admin_email: str,
        password_hash: str,
        ttl_seconds: int,
        clock: Callable[[], datetime] = None
    ):
        """
        Args:
            admin_email: Email del administrador
            password_hash: Hash werkzeug (o texto plano legacy)
            ttl_seconds: Duración de la sesión
            clock: Reloj inyectable (UTC)
        """
        self.admin_email = (admin_email or '').strip().lower()
        self.password_hash = password_hash or ''
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or _utc_now

    def _check_password(self, password: str) -> bool:
        # Soportar tanto hash como texto plano (legacy)
        if self.password_hash.startswith(HASH_PREFIXES):
            return check_password_hash(self.password_hash, password)
        return bool(self.password_hash) and self.password_hash == password

    def _issue(self, email: str) -> AdminSession:
        now = self._clock()
        return AdminSession(
            admin_id=self.ADMIN_ID,
            email=email,
            issued_at=now,
            expires_at=now + self.ttl,
        )

    def login(self, email: str, password: str) -> Result[AdminSession]:
        email = (email or '').strip().lower()
        if not email or not password:
            return Result.failure(ErrorKind.VALIDATION, 'Email y contraseña requeridos')

        if email != self.admin_email or not self._check_password(password):
            logger.warning("Intento de login de admin fallido: %s", email)
            return Result.failure(ErrorKind.UNAUTHORIZED, 'Credenciales inválidas')

        logger.info("Login de admin: %s", email)
        return Result.success(self._issue(email), 'Bienvenido')

    def validate(self, data: Optional[Dict[str, Any]]) -> Result[AdminSession]:
        """Valida la sesión guardada (None → UNAUTHORIZED, vencida → EXPIRED)."""
        if not data:
            return Result.failure(ErrorKind.UNAUTHORIZED, 'Debes iniciar sesión')
        try:
            admin_session = AdminSession.from_dict(data)
        except (KeyError, TypeError, ValueError):
            return Result.failure(ErrorKind.UNAUTHORIZED, 'Sesión inválida')

        if admin_session.is_expired(self._clock()):
            return Result.failure(ErrorKind.EXPIRED, 'Sesión expirada')
        return Result.success(admin_session)

    def refresh(self, admin_session: AdminSession) -> Result[AdminSession]:
        """Emite una sesión nueva solo si la actual sigue vigente."""
        if admin_session.is_expired(self._clock()):
            return Result.failure(ErrorKind.EXPIRED, 'Sesión expirada')
        return Result.success(self._issue(admin_session.email))
