# ==============================================================================
# CACERES STORE - Tienda de videojuegos + panel de administración
# ==============================================================================
# models/        → entidades (dataclasses) y Result
# repositories/  → persistencia JSON detrás de interfaces
# services/      → reglas de negocio
# app_container  → inyección de dependencias
# main           → API JSON (Flask)
# ==============================================================================

__version__ = '1.0.0'
