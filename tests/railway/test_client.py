import json

import httpx
import pytest

from gamenite.railway.client import GraphQLClient, GraphQLError

URL = "https://backboard.example/graphql/v2"


def _client(handler, token="tok-123"):
    return GraphQLClient(URL, token, transport=httpx.MockTransport(handler))


def test_execute_returns_data_and_sends_bearer():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"project": {"id": "p1"}}})

    data = _client(handler).execute("query { project }", {"projectId": "p1"})
    assert data == {"project": {"id": "p1"}}
    assert seen["auth"] == "Bearer tok-123"
    assert seen["body"] == {"query": "query { project }", "variables": {"projectId": "p1"}}


def test_no_token_sends_no_auth_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"data": {}})

    _client(handler, token="").execute("query { me }")
    assert seen["auth"] is None


def test_graphql_errors_raise():
    def handler(request):
        return httpx.Response(200, json={
            "data": None,
            "errors": [{"message": "Not Authorized"}, {"message": "Second"}],
        })

    with pytest.raises(GraphQLError) as exc_info:
        _client(handler).execute("query { x }")
    assert exc_info.value.error.code == "GRAPHQL_ERROR"
    assert exc_info.value.error.message == "Not Authorized; Second"
    assert len(exc_info.value.error.details) == 2


def test_http_status_error_raises_with_code():
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(GraphQLError) as exc_info:
        _client(handler).execute("query { x }")
    assert exc_info.value.error.code == "HTTP_500"
    assert exc_info.value.error.message == "HTTP 500"


def test_http_status_error_uses_graphql_message():
    def handler(request):
        return httpx.Response(400, json={"errors": [{"message": "Bad input"}]})

    with pytest.raises(GraphQLError) as exc_info:
        _client(handler).execute("query { x }")
    assert exc_info.value.error.code == "HTTP_400"
    assert exc_info.value.error.message == "Bad input"


def test_connection_error_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GraphQLError) as exc_info:
        _client(handler).execute("query { x }")
    assert exc_info.value.error.code == "REQUEST_ERROR"
    assert "connection refused" in exc_info.value.error.message


def test_invalid_json_raises():
    def handler(request):
        return httpx.Response(200, text="<html>not json</html>")

    with pytest.raises(GraphQLError) as exc_info:
        _client(handler).execute("query { x }")
    assert exc_info.value.error.code == "INVALID_RESPONSE"


def test_missing_data_is_empty_dict():
    def handler(request):
        return httpx.Response(200, json={"data": None})

    assert _client(handler).execute("query { x }") == {}


@pytest.mark.parametrize("payload", [[], "oops", 42])
def test_non_object_body_raises(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    with pytest.raises(GraphQLError) as exc_info:
        _client(handler).execute("query { x }")
    assert exc_info.value.error.code == "INVALID_RESPONSE"


def test_string_errors_raise_graphql_error():
    def handler(request):
        return httpx.Response(200, json={"errors": ["rate limited", {"message": "slow down"}]})

    with pytest.raises(GraphQLError) as exc_info:
        _client(handler).execute("query { x }")
    assert exc_info.value.error.code == "GRAPHQL_ERROR"
    assert exc_info.value.error.message == "rate limited; slow down"


def test_non_object_data_is_empty_dict():
    def handler(request):
        return httpx.Response(200, json={"data": ["unexpected"]})

    assert _client(handler).execute("query { x }") == {}
