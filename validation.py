"""Validación declarativa de formularios: campo -> reglas -> mensaje.

Cada pantalla describe sus campos con `FieldSpec` y el mismo `Schema`
evalúa todas las reglas, tanto en vivo (por campo) como al enviar.
"""
import math
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from errors import ValidationError

TEXT = "text"
INT = "int"
DECIMAL = "decimal"
CHOICE = "choice"

LETTERS_RE = r"^[a-zA-Z\s]+$"
PHONE_RE = r"^\d{10}$"
PRODUCT_CODE_RE = r"^\d{5}$"


@dataclass
class Rule:
    check: Callable[[object], bool]
    message: str


def pattern(regex, message):
    compiled = re.compile(regex)
    return Rule(lambda value: bool(compiled.match(str(value or ""))), message)


def required(message="El campo es requerido"):
    return Rule(lambda value: str(value if value is not None else "").strip() != "", message)


def positive_number(message="El valor debe ser un número mayor a 0"):
    def check(value):
        try:
            number = float(value)
        except (TypeError, ValueError):
            return False
        return math.isfinite(number) and number > 0
    return Rule(check, message)


def whole_number(message="El valor debe ser un número entero"):
    def check(value):
        try:
            number = float(value)
        except (TypeError, ValueError):
            return False
        return math.isfinite(number) and number.is_integer()
    return Rule(check, message)


def selected(message="El campo es requerido"):
    def check(value):
        if value in (None, "", 0, "0"):
            return False
        return True
    return Rule(check, message)


@dataclass
class FieldSpec:
    name: str
    label: str
    rules: List[Rule] = field(default_factory=list)
    kind: str = TEXT
    choices: Optional[str] = None  # recurso del API que alimenta el selector


class Schema:
    def __init__(self, fields):
        self.fields = list(fields)
        self._by_name = {f.name: f for f in self.fields}

    def __iter__(self):
        return iter(self.fields)

    def __getitem__(self, name):
        return self._by_name[name]

    def validate_field(self, name, value):
        spec = self._by_name.get(name)
        if spec is None:
            return None
        for rule in spec.rules:
            if not rule.check(value):
                return rule.message
        return None

    def validate(self, values):
        errors = {}
        for spec in self.fields:
            message = self.validate_field(spec.name, values.get(spec.name))
            if message:
                errors[spec.name] = message
        return errors

    def check(self, values):
        errors = self.validate(values)
        if errors:
            raise ValidationError(errors)

    def coerce(self, values):
        payload = {}
        for spec in self.fields:
            value = values.get(spec.name)
            if isinstance(value, str):
                value = value.strip()
            if spec.kind == INT or spec.kind == CHOICE:
                value = int(float(value)) if value not in (None, "") else None
            elif spec.kind == DECIMAL:
                value = float(value) if value not in (None, "") else None
            payload[spec.name] = value
        return payload


def parse_quantity(text, field_name="cantidad"):
    try:
        value = float(str(text).strip())
    except (TypeError, ValueError):
        raise ValidationError({field_name: "Ingrese una cantidad"})
    if not value.is_integer() or value <= 0:
        raise ValidationError({field_name: "La cantidad debe ser mayor a 0"})
    return int(value)


def parse_price(text, field_name="precio"):
    try:
        value = float(str(text).strip().replace(",", ""))
    except (TypeError, ValueError):
        raise ValidationError({field_name: "Ingrese el precio de compra"})
    if not math.isfinite(value) or value < 0:
        raise ValidationError({field_name: "El precio debe ser un número mayor o igual a 0"})
    return value
