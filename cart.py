import logging
from dataclasses import dataclass
from numbers import Number

from models import LineItem

logger = logging.getLogger(__name__)

TAX_RATE = 0.15  # IVA

SALE = "sale"
PURCHASE = "purchase"

MSG_QUANTITY = "La cantidad debe ser mayor a 0"
MSG_PRICE = "El precio debe ser un número mayor o igual a 0"
MSG_DUPLICATE = "El producto ya está en la lista. Elimínelo y vuelva a agregarlo."


def stock_message(stock):
    return f"Stock insuficiente. Stock disponible: {stock}"


@dataclass
class Totals:
    subtotal: float
    tax: float
    total: float


def compute_totals(items):
    subtotal = sum(item.subtotal for item in items)
    tax = subtotal * TAX_RATE
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)


class Cart:
    """Lista de líneas de la compra o venta en curso.

    Los rechazos no lanzan excepción: el mensaje se entrega a `on_reject`
    y queda en `last_error`, y la lista no cambia.
    """

    def __init__(self, kind=SALE, on_reject=None):
        if kind not in (SALE, PURCHASE):
            raise ValueError(f"Tipo de carrito desconocido: {kind}")
        self.kind = kind
        self.on_reject = on_reject
        self.last_error = None
        self._items = []

    @property
    def items(self):
        return list(self._items)

    def __len__(self):
        return len(self._items)

    def __bool__(self):
        return bool(self._items)

    def _reject(self, message):
        self.last_error = message
        logger.info(f"[{self.kind}] línea rechazada: {message}")
        if self.on_reject:
            self.on_reject(message)
        return self.items

    def contains(self, product_id):
        return any(item.product_id == product_id for item in self._items)

    def add(self, product_id, quantity, unit_price, stock=None):
        self.last_error = None
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return self._reject(MSG_QUANTITY)
        if isinstance(unit_price, bool) or not isinstance(unit_price, Number) or unit_price < 0:
            return self._reject(MSG_PRICE)
        if self.kind == SALE:
            if stock is not None and quantity > stock:
                return self._reject(stock_message(stock))
            if self.contains(product_id):
                return self._reject(MSG_DUPLICATE)
        self._items.append(LineItem(product_id=product_id, quantity=quantity, unit_price=float(unit_price)))
        logger.debug(f"[{self.kind}] producto {product_id} x{quantity} a {unit_price}")
        return self.items

    def add_product(self, product, quantity, unit_price=None):
        """Agrega un `Product` del listado cargado; las ventas usan su precio y su stock."""
        if unit_price is None:
            unit_price = product.price
        stock = product.stock if self.kind == SALE else None
        return self.add(product.id, quantity, unit_price, stock=stock)

    def remove(self, index):
        if 0 <= index < len(self._items):
            removed = self._items.pop(index)
            logger.debug(f"[{self.kind}] eliminado producto {removed.product_id}")
        return self.items

    def discard(self, lines):
        """Quita exactamente las líneas enviadas; las agregadas después se conservan."""
        sent = {id(line) for line in lines}
        self._items = [item for item in self._items if id(item) not in sent]
        return self.items

    def clear(self):
        self._items = []
        self.last_error = None

    def totals(self):
        return compute_totals(self._items)
