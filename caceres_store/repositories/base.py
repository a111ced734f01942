# ==============================================================================
# REPOSITORIO BASE - Acceso común a archivos JSON
# ==============================================================================
# Hace las veces del almacenamiento externo (base de datos hospedada).
# Los registros se guardan como lista: [{...}, {...}]
# ==============================================================================

import json
import logging
import os
import threading
from abc import ABC
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """
    Clase base para los repositorios JSON.

    Lecturas y escrituras se serializan con un lock global; la escritura
    va primero a un archivo temporal y luego se reemplaza el original.
    Los errores de E/S (OSError) se propagan: los servicios los convierten
    en Result.failure(ErrorKind.STORAGE).
    """

    _file_lock = threading.RLock()

    # Nombre del archivo dentro del directorio de datos (lo define cada repo)
    file_name: str = ''

    def __init__(self, data_dir: str):
        """
        Args:
            data_dir: Directorio donde viven los JSON
        """
        self.file_path = os.path.join(data_dir, self.file_name)
        os.makedirs(data_dir, exist_ok=True)
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        if not os.path.exists(self.file_path):
            self._write_raw([])

    def _read_raw(self) -> List[Dict[str, Any]]:
        """
        Lee los registros crudos del archivo.

        Un JSON corrupto se trata como vacío (y se registra);
        cualquier otro error de lectura se propaga.
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except FileNotFoundError:
                return []
            except json.JSONDecodeError:
                logger.warning("JSON inválido en %s; se trata como vacío", self.file_path)
                return []
        return data if isinstance(data, list) else []

    def _write_raw(self, data: List[Dict[str, Any]]) -> None:
        with self._file_lock:
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise


class ListRepository(BaseRepository):
    """
    Repositorio de registros en lista, identificados por el campo 'id'.

    Ejemplo: products.json -> [{"id": "p1", ...}, {"id": "p2", ...}]
    """

    def get_all(self) -> List[Dict[str, Any]]:
        return self._read_raw()

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        return self.find_by('id', str(record_id))

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """Primer registro cuyo campo coincide, o None."""
        for record in self.get_all():
            if record.get(field) == value:
                return record
        return None

    def upsert(self, record: Dict[str, Any]) -> None:
        """Reemplaza el registro con el mismo id o lo agrega al final."""
        with self._file_lock:
            data = self.get_all()
            for index, existing in enumerate(data):
                if existing.get('id') == record.get('id'):
                    data[index] = record
                    break
            else:
                data.append(record)
            self._write_raw(data)

    def delete(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """
        Elimina un registro.

        Returns:
            El registro eliminado o None si no existía
        """
        with self._file_lock:
            data = self.get_all()
            for index, existing in enumerate(data):
                if existing.get('id') == str(record_id):
                    removed = data.pop(index)
                    self._write_raw(data)
                    return removed
        return None
