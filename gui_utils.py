import logging
import queue
import threading
import tkinter as tk
from tkinter import messagebox

logger = logging.getLogger(__name__)

POLL_MS = 50


def show_popup_info(msg, title="Información", parent=None):
    """
    Muestra un aviso informativo.
    """
    messagebox.showinfo(title, msg, parent=parent)


def show_popup_warning(msg, title="Advertencia", parent=None):
    messagebox.showwarning(title, msg, parent=parent)


def show_popup_error(msg, title="Error", parent=None):
    messagebox.showerror(title, msg, parent=parent)


def show_popup_question(msg, title="Confirmar", parent=None):
    """
    Pregunta Sí/No, devuelve True/False
    """
    return messagebox.askyesno(title, msg, parent=parent)


def widget_alive(widget):
    try:
        return bool(widget.winfo_exists())
    except tk.TclError:
        # Tcl ya destruido
        return False


def run_in_background(widget, func, on_success=None, on_error=None):
    """
    Ejecuta `func` (una llamada de red) en un hilo y entrega el resultado en el hilo de Tk.
    Si `widget` ya fue destruido cuando llega la respuesta, el resultado se descarta.
    """
    results = queue.Queue(maxsize=1)

    def worker():
        try:
            results.put(("ok", func()))
        except Exception as e:
            results.put(("error", e))

    def poll():
        if not widget_alive(widget):
            logger.debug("[run_in_background] widget destruido, resultado descartado")
            return
        try:
            status, value = results.get_nowait()
        except queue.Empty:
            widget.after(POLL_MS, poll)
            return
        if status == "ok":
            if on_success:
                on_success(value)
        elif on_error:
            on_error(value)
        else:
            logger.error(f"[run_in_background] error sin manejar: {value}")

    threading.Thread(target=worker, daemon=True).start()
    widget.after(POLL_MS, poll)
