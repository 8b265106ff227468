import logging
import os
from datetime import datetime

from cart import compute_totals

logger = logging.getLogger(__name__)

WIDTH = 48


def format_money(value):
    return f"${float(value or 0):,.2f}"


def format_invoice(items, product_names=None, customer_name="", invoice_no="", date_time=None,
                   shop_name="Papelería Belén", shop_address="", shop_phone="", shop_tax_id="",
                   footer_note="Gracias por su preferencia"):
    """
    Genera el texto de la factura de una venta.
    `items` son LineItem; `product_names` es un dict {id_producto: nombre}.
    """
    product_names = product_names or {}
    if date_time is None:
        date_time = datetime.now()
    if isinstance(date_time, datetime):
        date_time = date_time.strftime("%d/%m/%Y %H:%M")
    totals = compute_totals(items)

    lines = []
    lines.append(f"{shop_name}".center(WIDTH))
    if shop_address:
        lines.append(shop_address.center(WIDTH))
    if shop_phone:
        lines.append(f"Tel: {shop_phone}".center(WIDTH))
    if shop_tax_id:
        lines.append(f"RUC: {shop_tax_id}".center(WIDTH))
    lines.append("=" * WIDTH)
    lines.append("FACTURA".center(WIDTH))
    lines.append(f"Fecha      : {date_time}")
    lines.append(f"No. Factura: {invoice_no or 'N/A'}")
    if customer_name:
        lines.append(f"Cliente    : {customer_name}")
    lines.append("-" * WIDTH)
    lines.append(f"{'Producto':<20}{'Cant':>6}{'Precio':>11}{'Subtotal':>11}")
    lines.append("-" * WIDTH)
    for item in items:
        name = str(product_names.get(item.product_id, item.product_id))[:20]
        lines.append(f"{name:<20}{item.quantity:>6}{item.unit_price:>11.2f}{item.subtotal:>11.2f}")
    lines.append("-" * WIDTH)
    lines.append(f"{'Subtotal:':>30}{format_money(totals.subtotal):>18}")
    lines.append(f"{'IVA:':>30}{format_money(totals.tax):>18}")
    lines.append(f"{'Total:':>30}{format_money(totals.total):>18}")
    lines.append("-" * WIDTH)
    if footer_note:
        lines.append(footer_note.center(WIDTH))
    return "\n".join(lines) + "\n"


def save_invoice(text, directory="facturas", now=None):
    now = now or datetime.now()
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, f"factura-{now.strftime('%Y%m%d%H%M%S%f')}.txt")
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)
    logger.info(f"[save_invoice] factura guardada en {path}")
    return path
