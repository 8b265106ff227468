import logging
import tkinter as tk
from tkinter import ttk

import customtkinter as ctk

import api
from cart import Cart, SALE
from entities import filter_records
from errors import PosError, ValidationError
from models import Customer, Product, Supplier
from print_utils import format_invoice, format_money, save_invoice
from screen_state import READY, ListState
from transactions import history_rows, load_transactions, prepare_submission, send_transaction
from validation import parse_price, parse_quantity
from gui_utils import run_in_background, show_popup_error, show_popup_info, show_popup_warning

logger = logging.getLogger(__name__)


class TransactionScreen(ctk.CTkFrame):
    """Pantalla de nueva compra o nueva venta, según `kind`."""

    def __init__(self, master, context, kind):
        super().__init__(master)
        self.context = context
        self.kind = kind
        self.is_sale = kind.cart_kind == SALE
        self.cart = Cart(kind.cart_kind, on_reject=self.on_reject)
        self.products_cache = api.CachedResource(context.api, api.PRODUCTS)
        self.products = []
        self.counterparties = []
        self.list_state = ListState(kind.resource)
        self.counterparty_var = tk.StringVar()
        self.product_var = tk.StringVar()
        self.product_search_var = tk.StringVar()
        self.quantity_var = tk.StringVar()
        self.price_var = tk.StringVar()
        self.build_ui()
        self.load_data()

    def destroy(self):
        self.list_state.close()
        super().destroy()

    # ---------- UI ----------
    def build_ui(self):
        ctk.CTkLabel(self, text=self.kind.title, font=("Arial", 20, "bold")).pack(anchor="w", padx=20, pady=(10, 0))
        main = ctk.CTkFrame(self, fg_color="transparent")
        main.pack(fill="both", expand=True, padx=20, pady=10)
        main.columnconfigure(0, weight=2)
        main.columnconfigure(1, weight=3)
        main.rowconfigure(0, weight=1)

        form = ctk.CTkFrame(main)
        form.grid(row=0, column=0, sticky="nsew", padx=(0, 10))
        label = self.kind.counterparty_label.capitalize()
        ctk.CTkLabel(form, text=label).pack(anchor="w", padx=10, pady=(10, 0))
        self.counterparty_menu = ctk.CTkComboBox(form, variable=self.counterparty_var, values=[])
        self.counterparty_menu.pack(fill="x", padx=10)
        self.lbl_counterparty_error = ctk.CTkLabel(form, text="", text_color="red", font=("Arial", 11))
        self.lbl_counterparty_error.pack(anchor="w", padx=10)

        ctk.CTkLabel(form, text="Producto").pack(anchor="w", padx=10)
        search = ctk.CTkEntry(form, textvariable=self.product_search_var, placeholder_text="Buscar producto por nombre o código...")
        search.pack(fill="x", padx=10, pady=(0, 4))
        self.product_search_var.trace_add("write", lambda *args: self.render_product_options())
        self.product_menu = ctk.CTkComboBox(form, variable=self.product_var, values=[])
        self.product_menu.pack(fill="x", padx=10)

        ctk.CTkLabel(form, text="Cantidad").pack(anchor="w", padx=10, pady=(8, 0))
        ctk.CTkEntry(form, textvariable=self.quantity_var, placeholder_text="Cantidad").pack(fill="x", padx=10)
        if not self.is_sale:
            ctk.CTkLabel(form, text="Precio de compra").pack(anchor="w", padx=10, pady=(8, 0))
            ctk.CTkEntry(form, textvariable=self.price_var, placeholder_text="0.00").pack(fill="x", padx=10)
        self.lbl_item_error = ctk.CTkLabel(form, text="", text_color="red", font=("Arial", 11), wraplength=300)
        self.lbl_item_error.pack(anchor="w", padx=10)
        verb = "venta" if self.is_sale else "compra"
        self.btn_add = ctk.CTkButton(form, text=f"Agregar a la {verb}", command=self.add_item)
        self.btn_add.pack(fill="x", padx=10, pady=10)

        right = ctk.CTkFrame(main)
        right.grid(row=0, column=1, sticky="nsew")
        columns = ("Producto", "Cantidad", "Precio", "Subtotal")
        self.cart_tree = ttk.Treeview(right, columns=columns, show="headings", height=8)
        for col in columns:
            self.cart_tree.heading(col, text=col)
            self.cart_tree.column(col, width=110)
        self.cart_tree.pack(fill="both", expand=True, padx=10, pady=10)
        self.btn_remove = ctk.CTkButton(right, text="Eliminar línea", fg_color="#FF6347", command=self.remove_item)
        self.btn_remove.pack(anchor="w", padx=10)

        self.total_labels = {}
        for key, text in (("subtotal", "Subtotal:"), ("tax", "IVA (15%):"), ("total", "Total:")):
            row = ctk.CTkFrame(right, fg_color="transparent")
            row.pack(fill="x", padx=10, pady=2)
            ctk.CTkLabel(row, text=text, font=("Arial", 15)).pack(side="left")
            lbl = ctk.CTkLabel(row, text=format_money(0), font=("Arial", 17, "bold"))
            lbl.pack(side="right")
            self.total_labels[key] = lbl
        self.btn_finish = ctk.CTkButton(right, text=f"Finalizar {verb}", height=50, fg_color="#32CD32", command=self.finish)
        self.btn_finish.pack(fill="x", padx=10, pady=10)

        history = ctk.CTkFrame(self)
        history.pack(fill="both", expand=True, padx=20, pady=(0, 10))
        title = "Ventas" if self.is_sale else "Compras"
        ctk.CTkLabel(history, text=f"{title} registradas", font=("Arial", 15, "bold")).pack(anchor="w", padx=10, pady=(6, 0))
        hist_cols = ("No.", "Fecha", label, "Total")
        self.history_tree = ttk.Treeview(history, columns=hist_cols, show="headings", height=6)
        for col in hist_cols:
            self.history_tree.heading(col, text=col)
            self.history_tree.column(col, width=120)
        self.history_tree.pack(fill="both", expand=True, padx=10, pady=6)

    # ---------- datos ----------
    def load_data(self):
        client = self.context.api
        model = Customer.from_api if self.is_sale else Supplier.from_api

        def fetch():
            products = [Product.from_api(row) for row in self.products_cache.revalidate()]
            counterparties = [model(row) for row in client.list(self.kind.counterparty_resource)]
            return products, counterparties

        run_in_background(self, fetch, on_success=self._data_loaded,
                          on_error=lambda error: self._load_failed("Error al cargar datos", error))
        self.load_history()

    def _data_loaded(self, result):
        self.products, self.counterparties = result
        self.counterparty_menu.configure(values=[c.name for c in self.counterparties])
        self.render_product_options()
        if self.list_state.status == READY:
            self.render_history()

    def _load_failed(self, message, error):
        logger.warning(f"[{self.kind.resource}] {message}: {error}")
        show_popup_error(message, parent=self)

    def load_history(self):
        token = self.list_state.begin()
        client = self.context.api
        run_in_background(self, lambda: load_transactions(client, self.kind),
                          on_success=lambda rows: self._history_loaded(token, rows),
                          on_error=lambda error: self._history_failed(token, error))

    def _history_loaded(self, token, rows):
        if self.list_state.resolve(token, rows):
            self.render_history()

    def render_history(self):
        # se vuelve a llamar cuando llegan los clientes/proveedores para mostrar nombres
        self.history_tree.delete(*self.history_tree.get_children())
        for trx_id, date, name, total in history_rows(self.list_state.items, self.counterparties):
            self.history_tree.insert("", "end", values=(trx_id, date, name, format_money(total)))

    def _history_failed(self, token, error):
        if self.list_state.fail(token, str(error)):
            self._load_failed(f"No se pudieron cargar las {self.kind.resource}", error)

    def product_options(self):
        visible = filter_records(self.products, self.product_search_var.get(), ['name', 'code'])
        if self.is_sale:
            # sin stock no se puede vender
            visible = [p for p in visible if p.stock > 0]
        return visible

    def render_product_options(self):
        labels = [f"{p.label} | Stock: {p.stock} | {format_money(p.price)}" for p in self.product_options()]
        self.product_menu.configure(values=labels)
        if labels and self.product_var.get() not in labels:
            self.product_var.set(labels[0])

    def selected_product(self):
        value = self.product_var.get()
        for product in self.product_options():
            if value.startswith(product.label + " |"):
                return product
        return None

    def selected_counterparty(self):
        value = self.counterparty_var.get()
        for item in self.counterparties:
            if item.name == value:
                return item
        return None

    # ---------- carrito ----------
    def on_reject(self, message):
        self.lbl_item_error.configure(text=message)

    def add_item(self):
        self.lbl_item_error.configure(text="")
        product = self.selected_product()
        if product is None:
            self.lbl_item_error.configure(text="Seleccione un producto")
            return
        try:
            quantity = parse_quantity(self.quantity_var.get())
            price = None if self.is_sale else parse_price(self.price_var.get())
        except ValidationError as e:
            self.lbl_item_error.configure(text=str(e))
            return
        self.cart.add_product(product, quantity, price)
        if self.cart.last_error is None:
            self.quantity_var.set("")
            self.price_var.set("")
            self.render_cart()

    def remove_item(self):
        selected = self.cart_tree.focus()
        if not selected:
            show_popup_warning("Seleccione una línea para eliminar", parent=self)
            return
        self.cart.remove(self.cart_tree.index(selected))
        self.render_cart()

    def render_cart(self):
        names = {p.id: p.name for p in self.products}
        self.cart_tree.delete(*self.cart_tree.get_children())
        for item in self.cart.items:
            self.cart_tree.insert("", "end", values=(names.get(item.product_id, item.product_id), item.quantity,
                                                     format_money(item.unit_price), format_money(item.subtotal)))
        totals = self.cart.totals()
        self.total_labels["subtotal"].configure(text=format_money(totals.subtotal))
        self.total_labels["tax"].configure(text=format_money(totals.tax))
        self.total_labels["total"].configure(text=format_money(totals.total))

    def finish(self):
        self.lbl_counterparty_error.configure(text="")
        counterparty = self.selected_counterparty()
        counterparty_id = counterparty.id if counterparty else None
        try:
            # validación local inmediata, antes de cualquier llamada de red
            items = prepare_submission(self.kind, self.cart, counterparty_id, self.products)
        except ValidationError as e:
            self._finish_failed(e)
            return
        client = self.context.api
        self.set_busy(True)
        run_in_background(
            self,
            lambda: send_transaction(client, self.kind, counterparty_id, items),
            on_success=lambda trx: self._finished(trx, counterparty, items),
            on_error=self._finish_failed,
        )

    def set_busy(self, busy):
        # mientras se envía, el carrito no cambia
        state = "disabled" if busy else "normal"
        self.btn_finish.configure(state=state)
        self.btn_add.configure(state=state)
        self.btn_remove.configure(state=state)

    def _finished(self, trx, counterparty, items):
        self.set_busy(False)
        self.cart.discard(items)
        if self.is_sale and self.context.config.get('SAVE_INVOICES'):
            self.write_invoice(trx, counterparty)
        show_popup_info(self.kind.success_message, parent=self)
        self.counterparty_var.set("")
        self.render_cart()
        # el stock cambió en el servidor
        self.load_data()

    def _finish_failed(self, error):
        self.set_busy(False)
        if isinstance(error, ValidationError):
            if self.kind.counterparty_key in error.errors:
                self.lbl_counterparty_error.configure(text=str(error))
            else:
                show_popup_warning(str(error), parent=self)
            return
        logger.warning(f"[{self.kind.resource}] error al finalizar: {error}")
        show_popup_error(str(error) if isinstance(error, PosError) else self.kind.fallback_message, parent=self)

    def write_invoice(self, trx, counterparty):
        config = self.context.config
        text = format_invoice(
            trx.items,
            product_names={p.id: p.name for p in self.products},
            customer_name=counterparty.name if counterparty else "",
            invoice_no=trx.id,
            date_time=trx.date,
            shop_name=config['SHOP_NAME'],
            shop_address=config['SHOP_ADDRESS'],
            shop_phone=config['SHOP_PHONE'],
            shop_tax_id=config['SHOP_TAX_ID'],
        )
        try:
            save_invoice(text, config['INVOICE_DIR'])
        except OSError as e:
            logger.error(f"[write_invoice] no se pudo guardar la factura: {e}")
            show_popup_warning("La factura no se pudo guardar, pero la venta fue registrada.", parent=self)
