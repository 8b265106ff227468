import itertools
import logging

logger = logging.getLogger(__name__)

LOADING = "loading"
READY = "ready"
ERROR = "error"


class ListState:
    """Estado de una pantalla de listado: Loading -> Ready | Error.

    Cada recarga devuelve un token; las respuestas con un token viejo o que
    llegan después de `close()` (pantalla destruida) se descartan.
    """

    _tokens = itertools.count(1)

    def __init__(self, name=""):
        self.name = name
        self.status = LOADING
        self.items = []
        self.error = None
        self.closed = False
        self._current = None

    @property
    def is_loading(self):
        return self.status == LOADING

    def begin(self):
        self._current = next(self._tokens)
        self.status = LOADING
        return self._current

    def _accepts(self, token):
        if self.closed:
            logger.debug(f"[{self.name}] respuesta descartada: pantalla cerrada")
            return False
        if token != self._current:
            logger.debug(f"[{self.name}] respuesta descartada: recarga más reciente en curso")
            return False
        return True

    def resolve(self, token, items):
        if not self._accepts(token):
            return False
        self.items = list(items)
        self.error = None
        self.status = READY
        return True

    def fail(self, token, message):
        if not self._accepts(token):
            return False
        self.error = str(message)
        self.status = ERROR
        return True

    def close(self):
        self.closed = True
