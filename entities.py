import logging
from dataclasses import dataclass
from typing import Callable, List, Tuple

import api
from errors import ValidationError
from models import Customer, Product, Supplier
from validation import (CHOICE, DECIMAL, INT, LETTERS_RE, PHONE_RE, PRODUCT_CODE_RE,
                        FieldSpec, Schema, pattern, positive_number, selected, whole_number)

logger = logging.getLogger(__name__)


@dataclass
class EntitySpec:
    resource: str
    title: str
    singular: str
    schema: Schema
    columns: List[Tuple[str, str]]  # (atributo del modelo, encabezado)
    search_fields: List[str]
    model: Callable


CUSTOMER_SPEC = EntitySpec(
    resource=api.CUSTOMERS,
    title="Clientes",
    singular="Cliente",
    schema=Schema([
        FieldSpec('nombre', "Nombre", [pattern(LETTERS_RE, "El nombre solo debe contener letras y espacios")]),
        FieldSpec('direccion', "Dirección"),
        FieldSpec('telefono', "Teléfono", [pattern(PHONE_RE, "El teléfono debe tener 10 dígitos")]),
        FieldSpec('email', "Email"),
    ]),
    columns=[('name', "Nombre"), ('address', "Dirección"), ('phone', "Teléfono"), ('email', "Email")],
    search_fields=['name', 'email', 'phone'],
    model=Customer.from_api,
)

SUPPLIER_SPEC = EntitySpec(
    resource=api.SUPPLIERS,
    title="Proveedores",
    singular="Proveedor",
    schema=Schema([
        FieldSpec('nombre', "Nombre", [pattern(LETTERS_RE, "Solo se permiten letras y espacios")]),
        FieldSpec('empresa', "Empresa", [pattern(LETTERS_RE, "Solo se permiten letras y espacios")]),
        FieldSpec('telefono', "Teléfono", [pattern(PHONE_RE, "El teléfono debe tener 10 dígitos")]),
        FieldSpec('email', "Email"),
        FieldSpec('direccion', "Dirección"),
    ]),
    columns=[('name', "Nombre"), ('company', "Empresa"), ('phone', "Teléfono"), ('email', "Email")],
    search_fields=['name', 'company', 'email', 'phone'],
    model=Supplier.from_api,
)

PRODUCT_SPEC = EntitySpec(
    resource=api.PRODUCTS,
    title="Inventario",
    singular="Producto",
    schema=Schema([
        FieldSpec('codigo', "Código", [pattern(PRODUCT_CODE_RE, "El código debe ser de 5 dígitos")]),
        FieldSpec('nombre', "Nombre", [pattern(LETTERS_RE, "El nombre solo debe contener letras y espacios")]),
        FieldSpec('descripcion', "Descripción"),
        FieldSpec('precio', "Precio", [positive_number()], kind=DECIMAL),
        FieldSpec('stock', "Stock", [positive_number(), whole_number("El stock debe ser un número entero")], kind=INT),
        FieldSpec('categoria', "Categoría", [selected()], kind=CHOICE, choices=api.CATEGORIES),
        FieldSpec('proveedor', "Proveedor", [selected()], kind=CHOICE, choices=api.SUPPLIERS),
    ]),
    columns=[('code', "Código"), ('name', "Nombre"), ('stock', "Stock"), ('price', "Precio")],
    search_fields=['name', 'code'],
    model=Product.from_api,
)

ENTITY_SPECS = {spec.resource: spec for spec in (CUSTOMER_SPEC, SUPPLIER_SPEC, PRODUCT_SPEC)}


def filter_records(records, query, fields):
    query = (query or "").strip().lower()
    if not query:
        return list(records)
    result = []
    for record in records:
        for name in fields:
            value = getattr(record, name, "")
            if query in str(value if value is not None else "").lower():
                result.append(record)
                break
    return result


class EntityEditor:
    """Formulario de alta/edición genérico para una entidad descrita por `EntitySpec`.

    `store` es el cliente del API o un `api.CachedResource`; en el segundo
    caso la lista se revalida sola después de guardar.
    """

    def __init__(self, store, spec, record=None):
        self.store = store
        self.spec = spec
        self.record = record
        self.errors = {}
        initial = record.to_payload() if record is not None else {}
        self.values = {}
        for field in spec.schema:
            value = initial.get(field.name)
            self.values[field.name] = "" if value is None else value

    @property
    def is_edit(self):
        return self.record is not None

    @property
    def title(self):
        return f"{'Editar' if self.is_edit else 'Nuevo'} {self.spec.singular}"

    def set_value(self, name, value):
        self.values[name] = value
        message = self.spec.schema.validate_field(name, value)
        if message:
            self.errors[name] = message
        else:
            self.errors.pop(name, None)
        return message

    def submit(self):
        self.errors = self.spec.schema.validate(self.values)
        if self.errors:
            raise ValidationError(self.errors)
        payload = self.spec.schema.coerce(self.values)
        fallback = f"No se pudo guardar el {self.spec.singular.lower()}"
        if isinstance(self.store, api.CachedResource):
            if self.is_edit:
                return self.store.update(self.record.id, payload, fallback=fallback)
            return self.store.create(payload, fallback=fallback)
        if self.is_edit:
            result = self.store.update(self.spec.resource, self.record.id, payload, fallback=fallback)
        else:
            result = self.store.create(self.spec.resource, payload, fallback=fallback)
        logger.info(f"[{self.spec.resource}] guardado {'actualización' if self.is_edit else 'alta'}")
        return result
