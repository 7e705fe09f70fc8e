"""
Write path through the remote record API.

Writes never touch storage directly. EAV tuples are serialized to the API's
EAV/JSON import format and submitted in one synchronous POST; the response is
classified into a WriteResult.

Invariants:
    - Exactly one HTTP attempt per submit(); retries belong to the caller
    - Credentials are checked before any network activity
    - Remote rejections and transport failures are returned, not raised
    - The API token is never logged

Wire format (form-encoded POST body):
    content=record, type=eav, format=json, token=<token>,
    data=[{"record": ..., "redcap_event_name": ..., "field_name": ..., "value": ...}, ...]
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from ..errors import RemoteRejectedError, TransportError, WriteNotConfiguredError
from .assembler import EavTuple

logger = logging.getLogger(__name__)

NO_ERROR_RETURNED = "No error returned."


class WriteOutcome(Enum):
    """Classification of a submit() attempt."""

    OK = "ok"
    REMOTE_REJECTED = "remote_rejected"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class WriteCredentials:
    """Endpoint and token for the remote write API."""

    api_url: str
    api_token: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.api_url:
            raise ValueError("api_url is required")
        if not self.api_token:
            raise ValueError("api_token is required")


@dataclass(frozen=True)
class WriteResult:
    """Result of one submit() call.

    Attributes:
        ok: True only for HTTP 200
        error_message: Empty on success, otherwise the reason for failure
        status_code: HTTP status, None when the endpoint was never reached
        outcome: Which kind of result this is
    """

    ok: bool
    error_message: str = ""
    status_code: int | None = None
    outcome: WriteOutcome = WriteOutcome.OK

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_error(self) -> WriteResult:
        """Raise the matching exception for a failed write.

        Returns:
            self, when the write succeeded

        Raises:
            RemoteRejectedError: The API answered with a non-200 status
            TransportError: The API could not be reached
        """
        if self.outcome is WriteOutcome.REMOTE_REJECTED:
            raise RemoteRejectedError(self.error_message, status_code=self.status_code)
        if self.outcome is WriteOutcome.TRANSPORT_ERROR:
            raise TransportError(self.error_message)
        return self


def encode_tuples(tuples: Iterable[EavTuple]) -> str:
    """Serialize tuples to the JSON ``data`` field of the import request."""
    return json.dumps([t.to_wire() for t in tuples])


def _error_from_body(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        return NO_ERROR_RETURNED
    if isinstance(body, dict) and body.get("error") is not None:
        return str(body["error"])
    return NO_ERROR_RETURNED


class RemoteWriter:
    """Submits EAV tuples to the remote write API.

    A caller-supplied httpx.Client is used as-is and never closed here;
    without one, a short-lived client is created for each submit.

    Example:
        >>> writer = RemoteWriter(WriteCredentials("https://redcap.example.org/api/", token))
        >>> result = writer.submit(tuples)
        >>> if not result.ok:
        ...     log.warning(result.error_message)
    """

    def __init__(
        self,
        credentials: WriteCredentials | None = None,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        self.credentials = credentials
        self._client = client
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return self.credentials is not None

    def build_form(self, tuples: Iterable[EavTuple]) -> dict[str, str]:
        """Build the form fields of an import request.

        Raises:
            WriteNotConfiguredError: If no credentials are set
        """
        if self.credentials is None:
            raise WriteNotConfiguredError()
        return {
            "content": "record",
            "type": "eav",
            "format": "json",
            "token": self.credentials.api_token,
            "data": encode_tuples(tuples),
        }

    def submit(self, tuples: Iterable[EavTuple]) -> WriteResult:
        """POST tuples to the write API once and classify the response.

        Returns:
            WriteResult; ok only for HTTP 200

        Raises:
            WriteNotConfiguredError: If no credentials are set
        """
        tuples = list(tuples)
        form = self.build_form(tuples)
        url = self.credentials.api_url

        try:
            if self._client is not None:
                response = self._client.post(url, data=form)
            else:
                with httpx.Client(**self._client_options()) as client:
                    response = client.post(url, data=form)
        except httpx.RequestError as e:
            detail = str(e) or type(e).__name__
            logger.warning(
                "Write API request failed",
                extra={"url": url, "tuples": len(tuples), "error": detail},
            )
            return WriteResult(
                ok=False,
                error_message=f"Transport error: {detail}",
                outcome=WriteOutcome.TRANSPORT_ERROR,
            )

        if response.status_code == 200:
            logger.info(
                "Write API accepted tuples",
                extra={"url": url, "tuples": len(tuples)},
            )
            return WriteResult(ok=True, status_code=200)

        error_message = _error_from_body(response)
        logger.warning(
            "Write API rejected tuples",
            extra={
                "url": url,
                "tuples": len(tuples),
                "status_code": response.status_code,
                "error": error_message,
            },
        )
        return WriteResult(
            ok=False,
            error_message=error_message,
            status_code=response.status_code,
            outcome=WriteOutcome.REMOTE_REJECTED,
        )

    def _client_options(self) -> dict[str, Any]:
        if self._timeout is None:
            return {}
        return {"timeout": self._timeout}
