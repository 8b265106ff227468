import logging

import customtkinter as ctk

from entities import CUSTOMER_SPEC, PRODUCT_SPEC, SUPPLIER_SPEC
from errors import PosError
from transactions import PURCHASE_KIND, SALE_KIND
from gui_entities import EntityScreen
from gui_stats import StatsPanel
from gui_transactions import TransactionScreen
from gui_utils import run_in_background, show_popup_error

logger = logging.getLogger(__name__)

SCREENS = [
    ("Inicio", lambda master, context: StatsPanel(master, context)),
    ("Inventario", lambda master, context: EntityScreen(master, context, PRODUCT_SPEC, cached=True)),
    ("Clientes", lambda master, context: EntityScreen(master, context, CUSTOMER_SPEC)),
    ("Proveedores", lambda master, context: EntityScreen(master, context, SUPPLIER_SPEC)),
    ("Compras", lambda master, context: TransactionScreen(master, context, PURCHASE_KIND)),
    ("Nueva venta", lambda master, context: TransactionScreen(master, context, SALE_KIND)),
]


class Dashboard(ctk.CTk):
    def __init__(self, context):
        super().__init__()
        self.context = context
        self.current = None
        self.title(f"{context.config['SHOP_NAME']} - Panel")
        self.geometry("1200x800")
        self.build_ui()
        self.show_screen("Inicio")

    def build_ui(self):
        navbar = ctk.CTkFrame(self, height=54, fg_color="#205065", corner_radius=0)
        navbar.pack(fill="x", side="top")
        ctk.CTkLabel(navbar, text=self.context.config['SHOP_NAME'], font=("Arial", 18, "bold"),
                     text_color="white").pack(side="left", padx=20)
        for name, _factory in SCREENS:
            ctk.CTkButton(navbar, text=name, width=100, fg_color="transparent",
                          command=lambda name=name: self.show_screen(name)).pack(side="left", padx=2, pady=8)
        ctk.CTkButton(navbar, text="Salir", width=80, fg_color="#B22222", command=self.logout).pack(side="right", padx=10)
        self.btn_theme = ctk.CTkButton(navbar, text=self._theme_label(), width=90, command=self.toggle_theme)
        self.btn_theme.pack(side="right", padx=2)
        if self.context.username:
            ctk.CTkLabel(navbar, text=f"Usuario: {self.context.user.display_name}",
                         text_color="#e6e6e6").pack(side="right", padx=10)
        self.content = ctk.CTkFrame(self, fg_color="transparent")
        self.content.pack(fill="both", expand=True)

    def _theme_label(self):
        return "☀ Claro" if self.context.appearance_mode == "dark" else "☾ Oscuro"

    def toggle_theme(self):
        ctk.set_appearance_mode(self.context.toggle_appearance())
        self.btn_theme.configure(text=self._theme_label())

    def show_screen(self, name):
        # la pantalla anterior se destruye y descarta sus respuestas pendientes
        if self.current is not None:
            self.current.destroy()
        factory = dict(SCREENS)[name]
        logger.debug(f"[show_screen] {name}")
        self.current = factory(self.content, self.context)
        self.current.pack(fill="both", expand=True)

    def logout(self):
        run_in_background(self, self.context.api.logout, on_success=lambda _r: self._logged_out(),
                          on_error=self._logout_failed)

    def _logout_failed(self, error):
        logger.error(f"[logout] Error al cerrar sesión: {error}")
        show_popup_error(str(error) if isinstance(error, PosError) else "Error al cerrar sesión", parent=self)

    def _logged_out(self):
        self.context.user = None
        self.destroy()
