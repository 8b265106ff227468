import logging
import sys

import customtkinter as ctk

from api import ApiClient
from config import AppContext, load_config
from gui_dashboard import Dashboard
from gui_login import LoginWindow

logger = logging.getLogger(__name__)


def run_session(context, login_window=LoginWindow, dashboard=Dashboard):
    """Login -> panel -> login ... hasta que se cierre una ventana sin cerrar sesión.

    Cada ventana termina su mainloop antes de abrir la siguiente.
    """
    while True:
        login_window(context).mainloop()
        if context.user is None:
            logger.info("[run_session] ventana de login cerrada")
            return
        dashboard(context).mainloop()
        if context.user is not None:
            # ventana del panel cerrada sin "Salir"
            return
        logger.info("[run_session] sesión cerrada, volviendo al login")


def main():
    try:
        config = load_config()
    except Exception as e:
        raise SystemExit(f"Error de configuración: {str(e)}")

    logging.basicConfig(level=config['LOG_LEVEL'], format="[%(name)s] %(message)s", stream=sys.stdout)
    ctk.set_appearance_mode(config['APPEARANCE_MODE'])
    ctk.set_default_color_theme(config['COLOR_THEME'])

    context = AppContext(config=config, api=ApiClient.from_config(config),
                         appearance_mode=config['APPEARANCE_MODE'])
    run_session(context)


if __name__ == "__main__":
    main()
