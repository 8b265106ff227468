import logging
import tkinter as tk
from tkinter import ttk

import customtkinter as ctk

import api
from entities import EntityEditor, filter_records
from errors import PosError, ValidationError
from models import Category
from print_utils import format_money
from screen_state import ERROR, LOADING, ListState
from validation import CHOICE
from gui_utils import run_in_background, show_popup_error, show_popup_info, show_popup_question, show_popup_warning

logger = logging.getLogger(__name__)


class EntityEditorDialog(ctk.CTkToplevel):
    """Diálogo de alta/edición construido a partir del esquema de la entidad."""

    def __init__(self, master, editor, choices=None, on_saved=None):
        super().__init__(master)
        self.editor = editor
        self.choices = choices or {}
        self.on_saved = on_saved
        self.vars = {}
        self.error_labels = {}
        self.title(editor.title)
        self.geometry("420x560")
        self.build_ui()
        self.transient(master)
        self.after(100, self.grab_set)

    def build_ui(self):
        frame = ctk.CTkScrollableFrame(self)
        frame.pack(fill="both", expand=True, padx=12, pady=12)
        for field in self.editor.spec.schema:
            ctk.CTkLabel(frame, text=field.label).pack(anchor="w")
            current = self.editor.values.get(field.name, "")
            if field.kind == CHOICE:
                options = self.choices.get(field.choices, [])
                names = [name for _id, name in options]
                var = tk.StringVar(value=self._choice_name(field.choices, current))
                widget = ctk.CTkOptionMenu(frame, values=names or ["-"], variable=var,
                                           command=lambda _value, name=field.name: self.on_change(name))
            else:
                var = tk.StringVar(value=str(current))
                widget = ctk.CTkEntry(frame, textvariable=var)
                var.trace_add("write", lambda *_args, name=field.name: self.on_change(name))
            widget.pack(fill="x")
            self.vars[field.name] = var
            label = ctk.CTkLabel(frame, text="", text_color="red", font=("Arial", 11))
            label.pack(anchor="w")
            self.error_labels[field.name] = label
        buttons = ctk.CTkFrame(self, fg_color="transparent")
        buttons.pack(fill="x", padx=12, pady=(0, 12))
        ctk.CTkButton(buttons, text="Cancelar", fg_color="gray", command=self.destroy).pack(side="right", padx=4)
        self.btn_save = ctk.CTkButton(buttons, text="Guardar", command=self.save)
        self.btn_save.pack(side="right", padx=4)

    def _choice_name(self, resource, record_id):
        for _id, name in self.choices.get(resource, []):
            if str(_id) == str(record_id):
                return name
        return "Seleccione..."

    def _choice_id(self, resource, name):
        for _id, option in self.choices.get(resource, []):
            if option == name:
                return _id
        return ""

    def read_value(self, name):
        field = self.editor.spec.schema[name]
        value = self.vars[name].get()
        if field.kind == CHOICE:
            return self._choice_id(field.choices, value)
        return value

    def on_change(self, name):
        message = self.editor.set_value(name, self.read_value(name))
        self.error_labels[name].configure(text=message or "")

    def show_errors(self, errors):
        for name, label in self.error_labels.items():
            label.configure(text=errors.get(name, ""))

    def save(self):
        for name in self.vars:
            self.editor.values[name] = self.read_value(name)
        self.btn_save.configure(state="disabled")
        run_in_background(self, self.editor.submit, on_success=self._saved, on_error=self._failed)

    def _saved(self, _record):
        singular = self.editor.spec.singular
        verb = "actualizado" if self.editor.is_edit else "creado"
        show_popup_info(f"{singular} {verb} correctamente", parent=self.master)
        callback = self.on_saved
        self.destroy()
        if callback:
            callback()

    def _failed(self, error):
        self.btn_save.configure(state="normal")
        if isinstance(error, ValidationError):
            self.show_errors(error.errors)
            return
        logger.warning(f"[EntityEditorDialog] error al guardar: {error}")
        message = str(error) if isinstance(error, PosError) else f"No se pudo guardar el {self.editor.spec.singular.lower()}"
        show_popup_error(message, parent=self)


class EntityScreen(ctk.CTkFrame):
    """Listado con búsqueda, alta, edición y borrado para clientes, proveedores o productos."""

    def __init__(self, master, context, spec, cached=False):
        super().__init__(master)
        self.context = context
        self.spec = spec
        self.list_state = ListState(spec.resource)
        # los productos usan la lista en caché (revalidada al montar y tras cada cambio)
        self.store = api.CachedResource(context.api, spec.resource) if cached else context.api
        self.records = []
        self.choices = {}
        self.search_var = tk.StringVar()
        self.build_ui()
        self.refresh()
        self.load_choices()

    def destroy(self):
        self.list_state.close()
        super().destroy()

    def build_ui(self):
        header = ctk.CTkFrame(self, fg_color="transparent")
        header.pack(fill="x", padx=20, pady=(10, 0))
        ctk.CTkLabel(header, text=self.spec.title, font=("Arial", 20, "bold")).pack(side="left")
        ctk.CTkButton(header, text=f"+ Nuevo {self.spec.singular}", command=lambda: self.open_editor()).pack(side="right")

        search = ctk.CTkEntry(self, textvariable=self.search_var, placeholder_text="Buscar...")
        search.pack(fill="x", padx=20, pady=10)
        self.search_var.trace_add("write", lambda *args: self.render_rows())

        self.status_label = ctk.CTkLabel(self, text="")
        self.status_label.pack(anchor="w", padx=20)

        columns = [header for _attr, header in self.spec.columns]
        self.tree = ttk.Treeview(self, columns=columns, show="headings")
        for col in columns:
            self.tree.heading(col, text=col)
            self.tree.column(col, width=150)
        self.tree.pack(fill="both", expand=True, padx=20, pady=5)
        self.tree.bind("<Double-1>", lambda e: self.edit_selected())

        actions = ctk.CTkFrame(self, fg_color="transparent")
        actions.pack(fill="x", padx=20, pady=(0, 10))
        ctk.CTkButton(actions, text="Editar", command=self.edit_selected).pack(side="left", padx=2)
        ctk.CTkButton(actions, text="Eliminar", fg_color="#B22222", command=self.delete_selected).pack(side="left", padx=2)
        self.btn_retry = ctk.CTkButton(actions, text="Recargar", command=self.refresh)
        self.btn_retry.pack(side="right", padx=2)

    def fetch(self):
        if isinstance(self.store, api.CachedResource):
            rows = self.store.revalidate()
        else:
            rows = self.store.list(self.spec.resource)
        return [self.spec.model(row) for row in rows]

    def refresh(self):
        token = self.list_state.begin()
        self.status_label.configure(text="Cargando...")
        run_in_background(self, self.fetch,
                          on_success=lambda records: self._loaded(token, records),
                          on_error=lambda error: self._failed(token, error))

    def _loaded(self, token, records):
        if self.list_state.resolve(token, records):
            self.records = records
            self.render_rows()

    def _failed(self, token, error):
        logger.warning(f"[{self.spec.resource}] error al cargar: {error}")
        if self.list_state.fail(token, f"No se pudieron cargar los {self.spec.title.lower()}"):
            self.render_rows()
            show_popup_error(self.list_state.error, parent=self)

    def load_choices(self):
        resources = {field.choices for field in self.spec.schema if field.kind == CHOICE}
        client = self.context.api
        for resource in resources:
            run_in_background(
                self,
                lambda resource=resource: [(c.id, c.name) for c in map(Category.from_api, client.list(resource))],
                on_success=lambda options, resource=resource: self.choices.__setitem__(resource, options),
                on_error=lambda error, resource=resource: logger.warning(f"[{resource}] error al cargar opciones: {error}"),
            )

    def cell(self, record, attr):
        value = getattr(record, attr, "")
        if attr == 'price':
            return format_money(value)
        return "" if value is None else value

    def render_rows(self):
        self.tree.delete(*self.tree.get_children())
        if self.list_state.status == LOADING:
            self.status_label.configure(text="Cargando...")
            return
        if self.list_state.status == ERROR:
            self.status_label.configure(text=self.list_state.error, text_color="red")
            return
        visible = filter_records(self.records, self.search_var.get(), self.spec.search_fields)
        for record in visible:
            self.tree.insert("", "end", iid=str(record.id),
                             values=[self.cell(record, attr) for attr, _header in self.spec.columns])
        self.status_label.configure(text=f"{len(visible)} de {len(self.records)} registros", text_color=("black", "white"))

    def selected_record(self):
        selected = self.tree.focus()
        if not selected:
            show_popup_warning(f"Seleccione un {self.spec.singular.lower()} de la lista", parent=self)
            return None
        for record in self.records:
            if str(record.id) == selected:
                return record
        return None

    def open_editor(self, record=None):
        editor = EntityEditor(self.store, self.spec, record)
        EntityEditorDialog(self, editor, choices=self.choices, on_saved=self.after_mutation)

    def edit_selected(self):
        record = self.selected_record()
        if record is not None:
            self.open_editor(record)

    def delete_selected(self):
        record = self.selected_record()
        if record is None:
            return
        if not show_popup_question(f"¿Eliminar {self.spec.singular.lower()} '{record.name}'?", parent=self):
            return
        fallback = f"No se pudo eliminar el {self.spec.singular.lower()}"
        if isinstance(self.store, api.CachedResource):
            action = lambda: self.store.delete(record.id, fallback=fallback)
        else:
            action = lambda: self.store.delete(self.spec.resource, record.id, fallback=fallback)
        run_in_background(self, action,
                          on_success=lambda _result: self._deleted(),
                          on_error=lambda error: show_popup_error(str(error) if isinstance(error, PosError) else fallback, parent=self))

    def _deleted(self):
        show_popup_info(f"{self.spec.singular} eliminado correctamente", parent=self)
        self.after_mutation()

    def after_mutation(self):
        # siempre se recarga la lista completa; la caché ya se revalidó al mutar
        if not isinstance(self.store, api.CachedResource):
            self.refresh()
            return
        token = self.list_state.begin()
        if self.store.error is not None:
            self._failed(token, self.store.error)
        elif self.store.data is not None:
            self._loaded(token, [self.spec.model(row) for row in self.store.data])
        else:
            self.refresh()
