import logging

import customtkinter as ctk

from errors import PosError
from gui_utils import run_in_background

logger = logging.getLogger(__name__)


class LoginWindow(ctk.CTk):
    def __init__(self, context):
        super().__init__()
        self.context = context
        self.title(f"{context.config['SHOP_NAME']} - Iniciar sesión")
        self.geometry("420x380")
        self.resizable(False, False)
        self.build_ui()
        self.check_current_user()

    def build_ui(self):
        frame = ctk.CTkFrame(self)
        frame.pack(pady=30, padx=20, fill="both", expand=True)
        ctk.CTkLabel(frame, text="Bienvenido", font=("Arial", 20, "bold")).pack(pady=(20, 4))
        ctk.CTkLabel(frame, text=f"Sistema de {self.context.config['SHOP_NAME']}").pack(pady=(0, 12))
        ctk.CTkLabel(frame, text="Usuario:").pack()
        self.ent_user = ctk.CTkEntry(frame, placeholder_text="Ingresa tu usuario")
        self.ent_user.pack(pady=5)
        self.ent_user.focus()
        ctk.CTkLabel(frame, text="Contraseña:").pack()
        self.ent_pass = ctk.CTkEntry(frame, show="*", placeholder_text="Ingresa tu contraseña")
        self.ent_pass.pack(pady=5)
        self.lbl_error = ctk.CTkLabel(frame, text="", text_color="red")
        self.lbl_error.pack()
        self.btn_login = ctk.CTkButton(frame, text="Iniciar sesión", command=self.try_login)
        self.btn_login.pack(pady=10)
        self.bind('<Return>', lambda e: self.try_login())

    def check_current_user(self):
        run_in_background(self, self.context.api.current_user, on_success=self._on_session_checked)

    def _on_session_checked(self, user):
        if user is not None:
            logger.info(f"[check_current_user] sesión existente para {user.username}")
            self.finish(user)

    def try_login(self):
        username = self.ent_user.get().strip()
        password = self.ent_pass.get().strip()
        if not username or not password:
            self.lbl_error.configure(text="Usuario y contraseña son obligatorios")
            return
        self.lbl_error.configure(text="")
        self.btn_login.configure(state="disabled", text="Iniciando sesión...")
        run_in_background(
            self,
            lambda: self.context.api.login(username, password),
            on_success=self.finish,
            on_error=self._on_login_error,
        )

    def _on_login_error(self, error):
        self.btn_login.configure(state="normal", text="Iniciar sesión")
        if isinstance(error, PosError):
            self.lbl_error.configure(text=str(error))
        else:
            logger.error(f"[try_login] error inesperado: {error}")
            self.lbl_error.configure(text="Error al iniciar sesión")

    def finish(self, user):
        self.context.user = user
        # termina el mainloop; run_session abre el panel
        self.destroy()
