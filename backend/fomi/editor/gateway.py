"""
Form Gateway - the editor session's client for the forms API.

Every call returns a ``GatewayResult``; HTTP errors, transport failures and
undecodable bodies are turned into a failed result and never raised.
"""
import enum
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from fomi.core.config import settings
from fomi.core.errors import FomiError
from fomi.core.logging import editor_logger
from fomi.forms.snapshot import FormSnapshot


class ErrorKind(str, enum.Enum):
    AUTH = "auth"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    TRANSPORT = "transport"


STATUS_KINDS = {
    401: ErrorKind.AUTH,
    403: ErrorKind.AUTH,
    404: ErrorKind.NOT_FOUND,
    400: ErrorKind.VALIDATION,
    422: ErrorKind.VALIDATION,
}

DEFAULT_MESSAGES = {
    ErrorKind.AUTH: "Unauthorized",
    ErrorKind.NOT_FOUND: "Form not found",
    ErrorKind.VALIDATION: "Invalid request",
    ErrorKind.TRANSPORT: "Failed to reach the server",
}


@dataclass
class GatewayResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: str = None) -> "GatewayResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str = None) -> "GatewayResult":
        return cls(success=False, error=error or DEFAULT_MESSAGES[kind], kind=kind)


class FormGateway:
    """
    Talks to ``/api/forms`` with the session's bearer token.

    The gateway owns its ``httpx.AsyncClient`` unless one is passed in;
    tests hand in a client bound to the app through ``ASGITransport``.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.token = token
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout,
        )

    @property
    def has_session(self) -> bool:
        return bool(self.token)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _request(self, method: str, path: str, *, auth: bool = True, **kwargs) -> GatewayResult:
        headers = {}
        if auth and self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = await self.client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            editor_logger.warning(f"Timeout calling {method} {path}", error=e)
            return GatewayResult.fail(ErrorKind.TRANSPORT, "Request timed out")
        except httpx.HTTPError as e:
            editor_logger.warning(f"Request error calling {method} {path}", error=e)
            return GatewayResult.fail(ErrorKind.TRANSPORT)

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code < 200 or response.status_code >= 300:
            kind = STATUS_KINDS.get(response.status_code, ErrorKind.TRANSPORT)
            message = body.get("error") if isinstance(body, dict) else None
            editor_logger.debug(
                f"{method} {path} -> {response.status_code}",
                status=response.status_code,
                kind=kind.value,
            )
            return GatewayResult.fail(kind, message)

        if not isinstance(body, dict):
            editor_logger.warning(f"Undecodable response body from {method} {path}")
            return GatewayResult.fail(ErrorKind.TRANSPORT, "Invalid response from server")
        return GatewayResult.ok(body)

    def _no_session(self) -> GatewayResult:
        return GatewayResult.fail(ErrorKind.AUTH, "User not authenticated")

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    async def load_form(self, form_id: str, preview: bool = False) -> GatewayResult:
        """On success ``data`` is a FormSnapshot with fields in stored order."""
        if not preview and not self.has_session:
            return self._no_session()
        if preview:
            result = await self._request("GET", f"/api/forms/{form_id}", auth=False, params={"preview": "true"})
        else:
            result = await self._request("GET", f"/api/forms/{form_id}")
        if not result.success:
            return result
        form = result.data.get("form")
        if not isinstance(form, dict):
            return GatewayResult.fail(ErrorKind.TRANSPORT, "Invalid response from server")
        try:
            snapshot = FormSnapshot.from_dict(form)
        except FomiError as e:
            editor_logger.warning("Could not decode loaded form", error=e, form_id=form_id)
            return GatewayResult.fail(ErrorKind.TRANSPORT, "Invalid response from server")
        return GatewayResult.ok(snapshot)

    async def save_form(self, snapshot: FormSnapshot) -> GatewayResult:
        if not self.has_session:
            return self._no_session()
        if not snapshot.id:
            return GatewayResult.fail(ErrorKind.VALIDATION, "Form ID is required")
        body = snapshot.to_dict()
        body["formId"] = body.pop("id")
        result = await self._request("PUT", "/api/forms", json=body)
        if result.success:
            editor_logger.info("Form saved", form_id=snapshot.id, field_count=len(snapshot.fields))
            return GatewayResult.ok(result.data.get("form"), message="Form saved successfully")
        return result

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def create_form(self) -> GatewayResult:
        """``data`` is the new form id."""
        if not self.has_session:
            return self._no_session()
        result = await self._request("POST", "/api/forms/create")
        if not result.success:
            return result
        return GatewayResult.ok(result.data.get("formId"))

    async def list_forms(self) -> GatewayResult:
        if not self.has_session:
            return self._no_session()
        result = await self._request("GET", "/api/forms")
        if not result.success:
            return result
        return GatewayResult.ok(result.data.get("forms", []))

    async def delete_form(self, form_id: str) -> GatewayResult:
        if not self.has_session:
            return self._no_session()
        return await self._request("DELETE", f"/api/forms/{form_id}")

    async def toggle_publish(self, form_id: str, publish: bool) -> GatewayResult:
        if not self.has_session:
            return self._no_session()
        result = await self._request("PATCH", f"/api/forms/{form_id}", json={"isPublished": publish})
        if not result.success:
            return result
        return GatewayResult.ok(result.data.get("form"))
