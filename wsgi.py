# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/             <- Directorio de trabajo
#   ├── wsgi.py            <- Este archivo
#   ├── pyproject.toml
#   └── caceres_store/     <- Paquete Python
#       ├── main.py
#       ├── services/
#       └── repositories/
# ==============================================================================

from caceres_store.config import setup_logging
from caceres_store.main import create_app

setup_logging()
app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
