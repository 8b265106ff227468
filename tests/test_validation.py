import pytest

from errors import ValidationError
from validation import (CHOICE, DECIMAL, INT, LETTERS_RE, PHONE_RE, PRODUCT_CODE_RE, FieldSpec,
                        Schema, parse_price, parse_quantity, pattern, positive_number, required,
                        selected, whole_number)


@pytest.fixture
def schema():
    return Schema([
        FieldSpec('nombre', "Nombre", [pattern(LETTERS_RE, "Solo letras")]),
        FieldSpec('telefono', "Teléfono", [pattern(PHONE_RE, "10 dígitos")]),
        FieldSpec('precio', "Precio", [positive_number()], kind=DECIMAL),
        FieldSpec('stock', "Stock", [positive_number()], kind=INT),
        FieldSpec('categoria', "Categoría", [selected()], kind=CHOICE, choices="categorias"),
        FieldSpec('email', "Email"),
    ])


def valid_values():
    return {
        'nombre': "Ana Maria",
        'telefono': "0991234567",
        'precio': "2.50",
        'stock': "10",
        'categoria': "3",
        'email': "",
    }


@pytest.mark.parametrize("value, ok", [
    ("Ana Maria", True),
    ("Ana3", False),
    ("", False),
    ("María", False),
])
def test_letters_pattern(value, ok):
    assert pattern(LETTERS_RE, "x").check(value) is ok


@pytest.mark.parametrize("value, ok", [
    ("0991234567", True),
    ("099123456", False),
    ("09912345678", False),
    ("09912a4567", False),
])
def test_phone_pattern(value, ok):
    assert pattern(PHONE_RE, "x").check(value) is ok


@pytest.mark.parametrize("value, ok", [("00012", True), ("1234", False), ("123456", False), ("12a45", False)])
def test_product_code_pattern(value, ok):
    assert pattern(PRODUCT_CODE_RE, "x").check(value) is ok


@pytest.mark.parametrize("value, ok", [
    ("1", True), (0.5, True), ("0", False), (-2, False), ("abc", False), (None, False),
    ("inf", False), ("1e400", False), ("nan", False),
])
def test_positive_number(value, ok):
    assert positive_number().check(value) is ok


@pytest.mark.parametrize("value, ok", [(3, True), ("7", True), (None, False), ("", False), (0, False), ("0", False)])
def test_selected(value, ok):
    assert selected().check(value) is ok


def test_required_strips_whitespace():
    rule = required()

    assert rule.check("x")
    assert not rule.check("   ")
    assert not rule.check(None)


def test_validate_returns_no_errors_for_valid_form(schema):
    assert schema.validate(valid_values()) == {}


def test_validate_reports_first_failing_rule_per_field(schema):
    values = valid_values()
    values['nombre'] = "Ana 2"
    values['stock'] = "0"
    values['categoria'] = ""

    errors = schema.validate(values)

    assert errors == {
        'nombre': "Solo letras",
        'stock': "El valor debe ser un número mayor a 0",
        'categoria': "El campo es requerido",
    }


def test_validate_field_unknown_name_is_ignored(schema):
    assert schema.validate_field('otro', "valor") is None


def test_check_raises_with_field_errors(schema):
    values = valid_values()
    values['telefono'] = "123"

    with pytest.raises(ValidationError) as excinfo:
        schema.check(values)

    assert excinfo.value.errors == {'telefono': "10 dígitos"}
    assert str(excinfo.value) == "10 dígitos"


def test_coerce_converts_by_kind(schema):
    payload = schema.coerce(valid_values())

    assert payload == {
        'nombre': "Ana Maria",
        'telefono': "0991234567",
        'precio': 2.5,
        'stock': 10,
        'categoria': 3,
        'email': "",
    }


def test_coerce_empty_numbers_become_none(schema):
    values = valid_values()
    values['precio'] = " "
    values['categoria'] = None

    payload = schema.coerce(values)

    assert payload['precio'] is None
    assert payload['categoria'] is None


def test_schema_lookup_and_iteration(schema):
    assert schema['stock'].kind == INT
    assert [f.name for f in schema][:2] == ['nombre', 'telefono']


@pytest.mark.parametrize("text, expected", [("3", 3), (" 12 ", 12), ("2.0", 2)])
def test_parse_quantity(text, expected):
    assert parse_quantity(text) == expected


@pytest.mark.parametrize("text, message", [
    ("", "Ingrese una cantidad"),
    ("abc", "Ingrese una cantidad"),
    ("0", "La cantidad debe ser mayor a 0"),
    ("-4", "La cantidad debe ser mayor a 0"),
    ("1.5", "La cantidad debe ser mayor a 0"),
])
def test_parse_quantity_rejects(text, message):
    with pytest.raises(ValidationError) as excinfo:
        parse_quantity(text)

    assert excinfo.value.errors == {'cantidad': message}


@pytest.mark.parametrize("text, expected", [("0", 0.0), ("1,250.50", 1250.5), (" 3.2 ", 3.2)])
def test_parse_price(text, expected):
    assert parse_price(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["-1", "nan", "inf"])
def test_parse_price_rejects_negative_and_non_finite(text):
    with pytest.raises(ValidationError):
        parse_price(text)


def test_parse_price_requires_a_number():
    with pytest.raises(ValidationError) as excinfo:
        parse_price("")

    assert excinfo.value.errors == {'precio': "Ingrese el precio de compra"}


@pytest.mark.parametrize("value, ok", [("3", True), ("3.0", True), (4, True), ("2.5", False), ("inf", False), ("", False)])
def test_whole_number(value, ok):
    assert whole_number().check(value) is ok
