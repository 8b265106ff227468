import logging

import customtkinter as ctk

import api
import stats
from print_utils import format_money
from screen_state import ERROR, LOADING, ListState
from transactions import SALE_KIND, load_transactions
from gui_utils import run_in_background

logger = logging.getLogger(__name__)

MSG_LOAD_ERROR = "Error al cargar los datos. Por favor, intente nuevamente."


def trend_text(value):
    arrow = "▲" if value >= 0 else "▼"
    return f"{arrow} {abs(value):.2f}% vs periodo anterior"


class StatsPanel(ctk.CTkFrame):
    """Resumen de ventas del periodo elegido comparado con el periodo anterior."""

    def __init__(self, master, context):
        super().__init__(master)
        self.context = context
        self.list_state = ListState("ventas-dashboard")
        self.product_names = {}
        self.time_range = stats.DAY
        self.body = None
        self.build_ui()
        self.refresh()

    def destroy(self):
        self.list_state.close()
        super().destroy()

    def build_ui(self):
        ctk.CTkLabel(self, text="Dashboard", font=("Arial", 20, "bold")).pack(anchor="w", padx=20, pady=(10, 0))
        labels = list(stats.TIME_RANGES.values())
        self.range_selector = ctk.CTkSegmentedButton(self, values=labels, command=self.on_range_change)
        self.range_selector.set(stats.TIME_RANGES[self.time_range])
        self.range_selector.pack(fill="x", padx=20, pady=10)

    def on_range_change(self, label):
        for key, text in stats.TIME_RANGES.items():
            if text == label:
                self.time_range = key
        self.render()

    def refresh(self):
        token = self.list_state.begin()
        self.render()
        client = self.context.api

        def fetch():
            sales = load_transactions(client, SALE_KIND)
            products = client.list(api.PRODUCTS)
            return sales, products

        run_in_background(self, fetch,
                          on_success=lambda result: self._loaded(token, result),
                          on_error=lambda error: self._failed(token, error))

    def _loaded(self, token, result):
        sales, products = result
        self.product_names = {p.get('id'): p.get('nombre', '') for p in products}
        if self.list_state.resolve(token, sales):
            self.render()

    def _failed(self, token, error):
        logger.warning(f"[StatsPanel] error al cargar ventas: {error}")
        if self.list_state.fail(token, MSG_LOAD_ERROR):
            self.render()

    def render(self):
        if self.body is not None:
            self.body.destroy()
        self.body = ctk.CTkFrame(self, fg_color="transparent")
        self.body.pack(fill="both", expand=True, padx=20, pady=10)

        if self.list_state.status == LOADING:
            ctk.CTkLabel(self.body, text="Cargando...").pack(pady=40)
            return
        if self.list_state.status == ERROR:
            panel = ctk.CTkFrame(self.body, fg_color="#fde2e2")
            panel.pack(fill="x", pady=20)
            ctk.CTkLabel(panel, text=self.list_state.error, text_color="#c0392b").pack(padx=16, pady=(16, 8))
            ctk.CTkButton(panel, text="⟳ Reintentar", command=self.refresh).pack(pady=(0, 16))
            return

        result = stats.compute_stats(self.list_state.items, self.time_range)
        cards = ctk.CTkFrame(self.body, fg_color="transparent")
        cards.pack(fill="x")
        self._card(cards, 0, "Ventas Totales", format_money(result.total),
                   f"{result.count} transacciones", result.growth)
        self._card(cards, 1, "Productos Vendidos", str(result.units), "Unidades vendidas", result.units_growth)
        self._card(cards, 2, "Crecimiento", f"{result.growth:.2f}%", "Comparado con periodo anterior", result.growth)
        self._card(cards, 3, "Ticket Promedio", format_money(result.average_ticket),
                   "Promedio por transacción", result.ticket_growth)

        lower = ctk.CTkFrame(self.body, fg_color="transparent")
        lower.pack(fill="both", expand=True, pady=10)
        lower.columnconfigure((0, 1), weight=1)
        self._summary(lower, result)
        self._top_products(lower, result)

    def _card(self, parent, column, title, value, subtitle, trend):
        parent.columnconfigure(column, weight=1)
        card = ctk.CTkFrame(parent)
        card.grid(row=0, column=column, padx=6, pady=6, sticky="nsew")
        ctk.CTkLabel(card, text=title, font=("Arial", 13, "bold")).pack(anchor="w", padx=12, pady=(10, 0))
        ctk.CTkLabel(card, text=value, font=("Arial", 22, "bold")).pack(anchor="w", padx=12)
        ctk.CTkLabel(card, text=subtitle, font=("Arial", 11)).pack(anchor="w", padx=12)
        color = "#27ae60" if trend >= 0 else "#c0392b"
        ctk.CTkLabel(card, text=trend_text(trend), text_color=color, font=("Arial", 11)).pack(anchor="w", padx=12, pady=(4, 10))

    def _summary(self, parent, result):
        box = ctk.CTkFrame(parent)
        box.grid(row=0, column=0, padx=6, sticky="nsew")
        ctk.CTkLabel(box, text="Resumen de Ventas", font=("Arial", 15, "bold")).pack(anchor="w", padx=12, pady=10)
        for label, amount, share in (("Ventas Totales", result.total, result.current_share),
                                     ("Ventas Periodo Anterior", result.prior_total, result.prior_share)):
            row = ctk.CTkFrame(box, fg_color="transparent")
            row.pack(fill="x", padx=12)
            ctk.CTkLabel(row, text=label).pack(side="left")
            ctk.CTkLabel(row, text=format_money(amount), font=("Arial", 12, "bold")).pack(side="right")
            bar = ctk.CTkProgressBar(box)
            bar.set(share / 100)
            bar.pack(fill="x", padx=12, pady=(2, 10))
        for label, value in (("Transacciones", result.count), ("Productos Vendidos", result.units)):
            row = ctk.CTkFrame(box, fg_color="transparent")
            row.pack(fill="x", padx=12, pady=4)
            ctk.CTkLabel(row, text=label).pack(side="left")
            ctk.CTkLabel(row, text=str(value), font=("Arial", 18, "bold")).pack(side="right")

    def _top_products(self, parent, result):
        box = ctk.CTkFrame(parent)
        box.grid(row=0, column=1, padx=6, sticky="nsew")
        ctk.CTkLabel(box, text="Productos Más Vendidos", font=("Arial", 15, "bold")).pack(anchor="w", padx=12, pady=10)
        if not result.top_products:
            ctk.CTkLabel(box, text="Sin ventas en este periodo").pack(anchor="w", padx=12)
            return
        for position, (product_id, quantity) in enumerate(result.top_products, start=1):
            name = self.product_names.get(product_id, product_id)
            row = ctk.CTkFrame(box, fg_color="transparent")
            row.pack(fill="x", padx=12, pady=2)
            ctk.CTkLabel(row, text=f"{position}. {name}").pack(side="left")
            ctk.CTkLabel(row, text=f"{quantity} uds.").pack(side="right")
