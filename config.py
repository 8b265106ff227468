import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
REQUIRED_KEYS = ["API_URL"]


def load_config(path=CONFIG_FILE):
    if not os.path.exists(path):
        raise FileNotFoundError(f"El archivo de configuración {path} no existe. Directorio actual: {os.getcwd()}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        with open(path, 'r', encoding='utf-8') as f:
            lines = f.readlines()
            error_line = lines[e.lineno - 1] if e.lineno <= len(lines) else "Desconocida"
        raise ValueError(f"El archivo de configuración {path} no es válido: {str(e)}\nLínea {e.lineno}: {error_line.strip()}")

    env_url = os.environ.get("PAPELERIA_API_URL", "").strip()
    if env_url:
        config['API_URL'] = env_url

    missing_keys = [key for key in REQUIRED_KEYS if not config.get(key)]
    if missing_keys:
        raise KeyError(f"Faltan las siguientes claves en {path}: {', '.join(missing_keys)}")

    config['API_URL'] = config['API_URL'].rstrip('/')
    config.setdefault('REQUEST_TIMEOUT', 10)
    config.setdefault('LOG_LEVEL', 'INFO')
    config.setdefault('APPEARANCE_MODE', 'dark')
    config.setdefault('COLOR_THEME', 'blue')
    config.setdefault('SHOP_NAME', 'Papelería Belén')
    config.setdefault('SHOP_ADDRESS', '')
    config.setdefault('SHOP_PHONE', '')
    config.setdefault('SHOP_TAX_ID', '')
    config.setdefault('INVOICE_DIR', 'facturas')
    config.setdefault('SAVE_INVOICES', True)
    logger.debug(f"Configuración cargada desde {path}: API_URL={config['API_URL']}")
    return config


@dataclass
class AppContext:
    """Estado compartido de la aplicación que se pasa explícitamente a cada pantalla."""
    config: dict
    api: object
    user: Optional[object] = None
    appearance_mode: str = "dark"

    def toggle_appearance(self):
        self.appearance_mode = "light" if self.appearance_mode == "dark" else "dark"
        return self.appearance_mode

    @property
    def username(self):
        return getattr(self.user, 'username', '') or ''
