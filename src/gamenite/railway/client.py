"""GraphQL transport for the Railway public API."""

from dataclasses import dataclass
from typing import Any

import httpx

from gamenite.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class GraphQLErrorDetail:
    code: str
    message: str
    details: Any = None


class GraphQLError(Exception):
    """Raised when a GraphQL request fails at the transport or API level."""

    def __init__(self, error: GraphQLErrorDetail):
        self.error = error
        super().__init__(error.message)


class GraphQLClient:
    def __init__(
        self,
        url: str,
        token: str,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(headers=headers, transport=transport)

    def close(self) -> None:
        self._http.close()

    def execute(self, document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a query or mutation and return its ``data`` payload.

        Raises GraphQLError on connection failures, non-2xx responses, and
        responses carrying an ``errors`` array.
        """
        payload = {"query": document, "variables": variables or {}}
        try:
            resp = self._http.post(self.url, json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as e:
            raise GraphQLError(GraphQLErrorDetail(
                code=f"HTTP_{e.response.status_code}",
                message=_response_message(e.response),
            )) from e
        except httpx.RequestError as e:
            raise GraphQLError(GraphQLErrorDetail(
                code="REQUEST_ERROR",
                message=f"Request failed: {e}",
            )) from e
        except ValueError as e:
            raise GraphQLError(GraphQLErrorDetail(
                code="INVALID_RESPONSE",
                message="Response was not valid JSON",
            )) from e

        if not isinstance(body, dict):
            raise GraphQLError(GraphQLErrorDetail(
                code="INVALID_RESPONSE",
                message="Response was not a JSON object",
            ))

        errors = body.get("errors")
        if errors:
            messages = _error_messages(errors)
            logger.debug("graphql_errors", errors=errors)
            raise GraphQLError(GraphQLErrorDetail(
                code="GRAPHQL_ERROR", message=messages, details=errors,
            ))
        data = body.get("data")
        return data if isinstance(data, dict) else {}


def _error_messages(errors) -> str:
    if not isinstance(errors, list):
        errors = [errors]
    return "; ".join(
        (err.get("message") or "unknown error") if isinstance(err, dict) else str(err)
        for err in errors
    )


def _response_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    errors = body.get("errors") if isinstance(body, dict) else None
    if errors:
        return _error_messages(errors)
    return f"HTTP {response.status_code}"
