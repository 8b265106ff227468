import logging

import requests

from errors import AuthenticationError, NetworkError, ServerValidationError
from models import User

logger = logging.getLogger(__name__)

CUSTOMERS = "clientes"
SUPPLIERS = "proveedores"
PRODUCTS = "productos"
CATEGORIES = "categorias"
PURCHASES = "compras"
SALES = "ventas"

MSG_NO_CONNECTION = "No se pudo conectar con el servidor"
MSG_GENERIC = "Error al procesar la solicitud"
MSG_BAD_LOGIN = "Usuario o contraseña incorrectos"

# Estados en los que el servidor rechaza el contenido enviado
REJECTION_STATUSES = (400, 409, 422)


def extract_detail(response):
    """Mensaje legible del cuerpo de error del servidor, o None."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, str):
        return body or None
    if isinstance(body, list):
        return "; ".join(str(x) for x in body) or None
    if not isinstance(body, dict):
        return None
    for key in ('detail', 'message', 'error', 'non_field_errors'):
        value = body.get(key)
        if value:
            return "; ".join(str(x) for x in value) if isinstance(value, list) else str(value)
    parts = []
    for key, value in body.items():
        if isinstance(value, list):
            value = ", ".join(str(x) for x in value)
        parts.append(f"{key}: {value}")
    return "; ".join(parts) or None


class ApiClient:
    def __init__(self, base_url, timeout=10, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault('Content-Type', 'application/json')

    @classmethod
    def from_config(cls, config):
        return cls(config['API_URL'], timeout=config.get('REQUEST_TIMEOUT', 10))

    def url(self, resource, record_id=None):
        if record_id is None:
            return f"{self.base_url}/{resource}/"
        return f"{self.base_url}/{resource}/{record_id}/"

    def request(self, method, url, fallback=MSG_GENERIC, **kwargs):
        logger.debug(f"[request] {method} {url} {kwargs.get('json', '')}")
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning(f"[request] {method} {url} sin respuesta: {e}")
            raise NetworkError(MSG_NO_CONNECTION) from e

        logger.debug(f"[request] {method} {url} -> {resp.status_code} {resp.text.strip()[:200]}")
        if resp.status_code in REJECTION_STATUSES:
            raise ServerValidationError(extract_detail(resp) or fallback)
        if not 200 <= resp.status_code < 300:
            logger.error(f"[request] {method} {url} falló con estado {resp.status_code}")
            raise NetworkError(extract_detail(resp) or f"{fallback} (HTTP {resp.status_code})", status=resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise NetworkError("Respuesta inválida del servidor", status=resp.status_code) from e

    # --------- CRUD ----------
    def list(self, resource):
        data = self.request("GET", self.url(resource))
        if isinstance(data, dict) and isinstance(data.get('results'), list):
            return data['results']
        return data or []

    def get(self, resource, record_id):
        return self.request("GET", self.url(resource, record_id))

    def create(self, resource, payload, fallback=MSG_GENERIC):
        return self.request("POST", self.url(resource), json=payload, fallback=fallback)

    def update(self, resource, record_id, payload, fallback=MSG_GENERIC):
        return self.request("PUT", self.url(resource, record_id), json=payload, fallback=fallback)

    def delete(self, resource, record_id, fallback=MSG_GENERIC):
        self.request("DELETE", self.url(resource, record_id), fallback=fallback)

    # --------- SESIÓN ----------
    def login(self, username, password):
        try:
            data = self.request("POST", f"{self.base_url}/login/", json={"username": username, "password": password})
        except ServerValidationError as e:
            raise AuthenticationError(MSG_BAD_LOGIN) from e
        except NetworkError as e:
            if e.status in (401, 403):
                raise AuthenticationError(MSG_BAD_LOGIN) from e
            raise
        if not isinstance(data, dict) or not data.get('success'):
            raise AuthenticationError(MSG_BAD_LOGIN)
        user = User.from_api(data.get('user'))
        logger.info(f"[login] sesión iniciada para {user.username or username}")
        return user

    def logout(self):
        self.request("POST", f"{self.base_url}/logout/", json={})
        self.session.cookies.clear()

    def current_user(self):
        try:
            data = self.request("GET", f"{self.base_url}/current-user/")
        except (NetworkError, ServerValidationError) as e:
            logger.info(f"[current_user] No hay usuario autenticado: {e}")
            return None
        if isinstance(data, dict) and data.get('authenticated'):
            return User.from_api(data.get('user'))
        return None


class CachedResource:
    """Listado en caché que se revalida al montar la pantalla y después de cada mutación."""

    def __init__(self, api, resource):
        self.api = api
        self.resource = resource
        self.data = None
        self.error = None

    @property
    def is_loading(self):
        return self.data is None and self.error is None

    def revalidate(self):
        try:
            self.data = self.api.list(self.resource)
            self.error = None
        except (NetworkError, ServerValidationError) as e:
            self.error = e
            raise
        return self.data

    def _revalidate_after_write(self):
        # la escritura ya quedó en el servidor; un fallo al recargar solo afecta al listado
        try:
            self.revalidate()
        except (NetworkError, ServerValidationError) as e:
            logger.warning(f"[{self.resource}] no se pudo recargar tras guardar: {e}")

    def create(self, payload, fallback=MSG_GENERIC):
        record = self.api.create(self.resource, payload, fallback=fallback)
        self._revalidate_after_write()
        return record

    def update(self, record_id, payload, fallback=MSG_GENERIC):
        record = self.api.update(self.resource, record_id, payload, fallback=fallback)
        self._revalidate_after_write()
        return record

    def delete(self, record_id, fallback=MSG_GENERIC):
        self.api.delete(self.resource, record_id, fallback=fallback)
        self._revalidate_after_write()
