from unittest.mock import Mock

import pytest
import requests

import api
from api import ApiClient, CachedResource, extract_detail
from errors import AuthenticationError, NetworkError, ServerValidationError


def make_response(status=200, body=None, raw=None):
    response = Mock()
    response.status_code = status
    if raw is not None:
        response.content = raw.encode()
        response.text = raw
        response.json.side_effect = ValueError("no json")
    elif body is None:
        response.content = b""
        response.text = ""
        response.json.side_effect = ValueError("no json")
    else:
        response.content = b"{...}"
        response.text = str(body)
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    mock = Mock()
    mock.headers = {}
    mock.cookies = Mock()
    return mock


@pytest.fixture
def client(session):
    return ApiClient("http://api.local/api/", timeout=5, session=session)


def test_url_building(client):
    assert client.url(api.PRODUCTS) == "http://api.local/api/productos/"
    assert client.url(api.CUSTOMERS, 7) == "http://api.local/api/clientes/7/"


def test_from_config_uses_timeout():
    client = ApiClient.from_config({'API_URL': "http://x", 'REQUEST_TIMEOUT': 3})

    assert client.timeout == 3
    assert client.base_url == "http://x"


def test_list_returns_rows(client, session):
    session.request.return_value = make_response(200, [{'id': 1}])

    assert client.list(api.CUSTOMERS) == [{'id': 1}]
    session.request.assert_called_once_with("GET", "http://api.local/api/clientes/", timeout=5)


def test_list_unwraps_paginated_results(client, session):
    session.request.return_value = make_response(200, {'count': 1, 'results': [{'id': 2}]})

    assert client.list(api.PRODUCTS) == [{'id': 2}]


def test_list_empty_body_is_empty_list(client, session):
    session.request.return_value = make_response(200)

    assert client.list(api.SALES) == []


def test_create_sends_json_payload(client, session):
    session.request.return_value = make_response(201, {'id': 5, 'nombre': 'Ana'})

    result = client.create(api.CUSTOMERS, {'nombre': 'Ana'})

    assert result == {'id': 5, 'nombre': 'Ana'}
    session.request.assert_called_once_with("POST", "http://api.local/api/clientes/", timeout=5,
                                            json={'nombre': 'Ana'})


def test_delete_with_no_content(client, session):
    session.request.return_value = make_response(204)

    assert client.delete(api.PRODUCTS, 3) is None
    assert session.request.call_args[0] == ("DELETE", "http://api.local/api/productos/3/")


def test_connection_error_becomes_network_error(client, session):
    session.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(NetworkError) as excinfo:
        client.list(api.PRODUCTS)

    assert str(excinfo.value) == "No se pudo conectar con el servidor"
    assert excinfo.value.status is None


@pytest.mark.parametrize("status", [400, 409, 422])
def test_rejection_uses_server_detail(client, session, status):
    session.request.return_value = make_response(status, {'detail': "Stock insuficiente"})

    with pytest.raises(ServerValidationError) as excinfo:
        client.create(api.SALES, {}, fallback="Error al procesar la venta")

    assert str(excinfo.value) == "Stock insuficiente"


def test_rejection_without_detail_uses_fallback(client, session):
    session.request.return_value = make_response(400, raw="<html>bad</html>")

    with pytest.raises(ServerValidationError) as excinfo:
        client.create(api.SALES, {}, fallback="Error al procesar la venta")

    assert str(excinfo.value) == "Error al procesar la venta"


def test_server_error_is_network_error_with_status(client, session):
    session.request.return_value = make_response(500, raw="boom")

    with pytest.raises(NetworkError) as excinfo:
        client.update(api.CUSTOMERS, 1, {}, fallback="No se pudo guardar el cliente")

    assert excinfo.value.status == 500
    assert str(excinfo.value) == "No se pudo guardar el cliente (HTTP 500)"


def test_invalid_json_on_success(client, session):
    session.request.return_value = make_response(200, raw="not json")

    with pytest.raises(NetworkError) as excinfo:
        client.get(api.PRODUCTS, 1)

    assert str(excinfo.value) == "Respuesta inválida del servidor"


@pytest.mark.parametrize("body, expected", [
    ({'detail': "No encontrado"}, "No encontrado"),
    ({'non_field_errors': ["a", "b"]}, "a; b"),
    ({'codigo': ["ya existe"], 'stock': ["inválido"]}, "codigo: ya existe; stock: inválido"),
    (["uno", "dos"], "uno; dos"),
    ({}, None),
])
def test_extract_detail(body, expected):
    assert extract_detail(make_response(400, body)) == expected


def test_login_success_returns_user(client, session):
    session.request.return_value = make_response(200, {'success': True, 'user': {'id': 1, 'username': 'caja'}})

    user = client.login("caja", "secreto")

    assert user.username == "caja"
    assert session.request.call_args[1]['json'] == {"username": "caja", "password": "secreto"}


@pytest.mark.parametrize("response", [
    make_response(200, {'success': False}),
    make_response(400, {'detail': "Credenciales inválidas"}),
    make_response(401, {'detail': "No autorizado"}),
])
def test_login_failures_raise_authentication_error(client, session, response):
    session.request.return_value = response

    with pytest.raises(AuthenticationError) as excinfo:
        client.login("caja", "mala")

    assert str(excinfo.value) == api.MSG_BAD_LOGIN


def test_login_without_connection_is_network_error(client, session):
    session.request.side_effect = requests.exceptions.Timeout()

    with pytest.raises(NetworkError):
        client.login("caja", "x")


def test_logout_clears_cookies(client, session):
    session.request.return_value = make_response(200, {'success': True})

    client.logout()

    session.cookies.clear.assert_called_once_with()


def test_current_user(client, session):
    session.request.return_value = make_response(200, {'authenticated': True, 'user': {'id': 2, 'username': 'ana'}})

    assert client.current_user().username == "ana"


@pytest.mark.parametrize("response", [
    make_response(200, {'authenticated': False}),
    make_response(403, {'detail': "Sin sesión"}),
])
def test_current_user_none_when_not_authenticated(client, session, response):
    session.request.return_value = response

    assert client.current_user() is None


def test_cached_resource_revalidates_after_mutation():
    api_client = Mock()
    api_client.list.return_value = [{'id': 1}, {'id': 2}]
    api_client.create.return_value = {'id': 2}
    cache = CachedResource(api_client, api.PRODUCTS)

    assert cache.is_loading
    record = cache.create({'nombre': 'x'}, fallback="No se pudo guardar el producto")

    assert record == {'id': 2}
    assert cache.data == [{'id': 1}, {'id': 2}]
    api_client.create.assert_called_once_with(api.PRODUCTS, {'nombre': 'x'}, fallback="No se pudo guardar el producto")
    api_client.list.assert_called_once_with(api.PRODUCTS)


def test_cached_resource_update_and_delete_revalidate():
    api_client = Mock()
    api_client.list.return_value = []
    cache = CachedResource(api_client, api.PRODUCTS)

    cache.update(3, {'stock': 4})
    cache.delete(3)

    assert api_client.list.call_count == 2
    api_client.delete.assert_called_once_with(api.PRODUCTS, 3, fallback=api.MSG_GENERIC)


def test_cached_resource_keeps_error():
    api_client = Mock()
    api_client.list.side_effect = NetworkError()
    cache = CachedResource(api_client, api.PRODUCTS)

    with pytest.raises(NetworkError):
        cache.revalidate()

    assert isinstance(cache.error, NetworkError)
    assert not cache.is_loading


def test_cached_write_succeeds_even_if_reload_fails():
    """La escritura ya se hizo: un fallo al recargar la lista no la reporta como fallida."""
    api_client = Mock()
    api_client.create.return_value = {'id': 9}
    api_client.list.side_effect = NetworkError()
    cache = CachedResource(api_client, api.PRODUCTS)

    record = cache.create({'nombre': 'x'})
    cache.delete(9)

    assert record == {'id': 9}
    assert api_client.create.call_count == 1
    api_client.delete.assert_called_once_with(api.PRODUCTS, 9, fallback=api.MSG_GENERIC)
    assert isinstance(cache.error, NetworkError)
    assert cache.data is None
