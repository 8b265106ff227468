import logging
from dataclasses import dataclass

import api
from cart import PURCHASE, SALE, compute_totals, stock_message
from errors import ValidationError
from models import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionKind:
    cart_kind: str
    resource: str
    counterparty_resource: str
    counterparty_key: str
    price_key: str
    title: str
    counterparty_label: str
    success_message: str
    fallback_message: str


SALE_KIND = TransactionKind(
    cart_kind=SALE,
    resource=api.SALES,
    counterparty_resource=api.CUSTOMERS,
    counterparty_key='cliente',
    price_key='precio_venta',
    title="Nueva Venta",
    counterparty_label="cliente",
    success_message="Venta registrada con éxito",
    fallback_message="Error al procesar la venta",
)

PURCHASE_KIND = TransactionKind(
    cart_kind=PURCHASE,
    resource=api.PURCHASES,
    counterparty_resource=api.SUPPLIERS,
    counterparty_key='proveedor',
    price_key='precio_compra',
    title="Nueva Compra",
    counterparty_label="proveedor",
    success_message="Compra registrada con éxito",
    fallback_message="Error al procesar la compra",
)


def build_payload(kind, counterparty_id, items):
    return {
        kind.counterparty_key: counterparty_id,
        'items': [
            {
                'producto': item.product_id,
                'cantidad': item.quantity,
                kind.price_key: item.unit_price,
            }
            for item in items
        ],
    }


def check_draft(kind, cart, counterparty_id, products=None):
    """Validaciones locales antes de enviar; lanza ValidationError sin tocar la red."""
    if not cart:
        raise ValidationError({'items': "Agregue al menos un producto"})
    if not counterparty_id:
        raise ValidationError({kind.counterparty_key: f"Debe seleccionar un {kind.counterparty_label}"})
    if kind.cart_kind == SALE and products:
        # el stock en caché puede estar desactualizado; el servidor tiene la última palabra
        stock_by_id = {p.id: p.stock for p in products}
        for item in cart.items:
            stock = stock_by_id.get(item.product_id)
            if stock is not None and item.quantity > stock:
                raise ValidationError({'cantidad': stock_message(stock)})


def prepare_submission(kind, cart, counterparty_id, products=None):
    """Valida el borrador y devuelve la copia de líneas a enviar. Se llama en el hilo de Tk."""
    check_draft(kind, cart, counterparty_id, products)
    return cart.items


def send_transaction(client, kind, counterparty_id, items):
    """POST de las líneas ya validadas; no toca el carrito."""
    payload = build_payload(kind, counterparty_id, items)
    logger.info(f"[send_transaction] {kind.resource}: {len(items)} líneas para {kind.counterparty_key} {counterparty_id}")
    data = client.create(kind.resource, payload, fallback=kind.fallback_message)
    if not isinstance(data, dict):
        data = {}
    transaction = Transaction.from_api(data, counterparty_key=kind.counterparty_key)
    # respuesta sin detalle: se completa con lo enviado
    if not transaction.items:
        transaction.items = items
    if transaction.counterparty_id is None:
        transaction.counterparty_id = counterparty_id
    if data.get('total') is None:
        transaction.total = compute_totals(items).total
    return transaction


def submit_transaction(client, kind, cart, counterparty_id, products=None):
    items = prepare_submission(kind, cart, counterparty_id, products)
    transaction = send_transaction(client, kind, counterparty_id, items)
    cart.discard(items)
    return transaction


def load_transactions(client, kind):
    return [Transaction.from_api(row, counterparty_key=kind.counterparty_key) for row in client.list(kind.resource)]


def history_rows(transactions, counterparties):
    """Filas (no., fecha, nombre, total) de la más reciente a la más antigua.

    Sin el listado de clientes/proveedores se muestra el id.
    """
    names = {c.id: c.name for c in counterparties}
    rows = []
    for trx in reversed(transactions):
        date = trx.date.strftime("%d/%m/%Y") if trx.date else "-"
        rows.append((trx.id, date, names.get(trx.counterparty_id, trx.counterparty_id), trx.total))
    return rows
