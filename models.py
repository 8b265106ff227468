# Modelos de datos. Las claves en español son el contrato del API remoto
# y solo se traducen aquí (from_api / to_payload).

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


def _to_float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value, default=0):
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _ref_id(value):
    # El API a veces devuelve la referencia como objeto anidado {"id": .., "nombre": ..}
    if isinstance(value, dict):
        return value.get('id')
    return value


def parse_date(value):
    """Convierte una fecha ISO-8601 del API a datetime con zona horaria (UTC si viene sin zona)."""
    if isinstance(value, datetime):
        dt = value
    elif not value:
        return None
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass
class Category:
    id: int
    name: str

    @classmethod
    def from_api(cls, data):
        return cls(id=data.get('id'), name=data.get('nombre', ''))


@dataclass
class Product:
    id: int
    code: str
    name: str
    price: float
    stock: int
    description: str = ""
    category: Optional[int] = None
    supplier: Optional[int] = None

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get('id'),
            code=str(data.get('codigo', '') or ''),
            name=data.get('nombre', '') or '',
            price=_to_float(data.get('precio')),
            stock=_to_int(data.get('stock')),
            description=data.get('descripcion', '') or '',
            category=_ref_id(data.get('categoria')),
            supplier=_ref_id(data.get('proveedor')),
        )

    def to_payload(self):
        return {
            'codigo': self.code,
            'nombre': self.name,
            'descripcion': self.description,
            'precio': self.price,
            'stock': self.stock,
            'categoria': self.category,
            'proveedor': self.supplier,
        }

    @property
    def label(self):
        return f"{self.name} ({self.code})"


@dataclass
class Customer:
    id: int
    name: str
    phone: str = ""
    email: str = ""
    address: str = ""

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get('id'),
            name=data.get('nombre', '') or '',
            phone=data.get('telefono', '') or '',
            email=data.get('email', '') or '',
            address=data.get('direccion', '') or '',
        )

    def to_payload(self):
        return {
            'nombre': self.name,
            'direccion': self.address,
            'telefono': self.phone,
            'email': self.email,
        }


@dataclass
class Supplier:
    id: int
    name: str
    company: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get('id'),
            name=data.get('nombre', '') or '',
            company=data.get('empresa', '') or '',
            phone=data.get('telefono', '') or '',
            email=data.get('email', '') or '',
            address=data.get('direccion', '') or '',
        )

    def to_payload(self):
        return {
            'nombre': self.name,
            'empresa': self.company,
            'telefono': self.phone,
            'email': self.email,
            'direccion': self.address,
        }


@dataclass
class User:
    id: int
    username: str
    first_name: str = ""
    last_name: str = ""

    @classmethod
    def from_api(cls, data):
        data = data or {}
        return cls(
            id=data.get('id'),
            username=data.get('username', '') or '',
            first_name=data.get('first_name', '') or '',
            last_name=data.get('last_name', '') or '',
        )

    @property
    def display_name(self):
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username


@dataclass
class LineItem:
    product_id: int
    quantity: int
    unit_price: float

    @property
    def subtotal(self):
        return self.quantity * self.unit_price

    @classmethod
    def from_api(cls, data):
        unit_price = data.get('precio_venta', data.get('precio_compra', data.get('precio')))
        return cls(
            product_id=_ref_id(data.get('producto')),
            quantity=_to_int(data.get('cantidad')),
            unit_price=_to_float(unit_price),
        )


@dataclass
class Transaction:
    """Compra o venta ya registrada. Nunca se edita desde el front-end."""
    id: int
    counterparty_id: Optional[int]
    date: Optional[datetime]
    items: List[LineItem] = field(default_factory=list)
    total: float = 0.0

    @classmethod
    def from_api(cls, data, counterparty_key='cliente'):
        items = [LineItem.from_api(item) for item in (data.get('items') or [])]
        total = data.get('total')
        if total is None:
            total = sum(item.subtotal for item in items)
        return cls(
            id=data.get('id'),
            counterparty_id=_ref_id(data.get(counterparty_key)),
            date=parse_date(data.get('fecha')),
            items=items,
            total=_to_float(total),
        )

    @property
    def units(self):
        return sum(item.quantity for item in self.items)
