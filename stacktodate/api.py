"""
Client for the stacktodate.club tech stack API.

All calls send a bearer token and JSON bodies. HTTP failures are translated
into ApiError subclasses whose messages tell the user what to do next.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Mapping

from .common import StackToDateError, get_env_or_default
from .config import DEFAULT_API_URL
from .manifest import StackEntry

logger = logging.getLogger(__name__)

USER_AGENT = "stacktodate-cli"


class ApiError(StackToDateError):
    """Raised when the API returns an unexpected response."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ApiConnectionError(ApiError):
    """Raised when the API cannot be reached."""
    pass


class AuthenticationError(ApiError):
    """401: missing, invalid or expired token."""
    pass


class NotFoundError(ApiError):
    """404: the tech stack id does not exist."""
    pass


class ValidationError(ApiError):
    """422: the server rejected the request body."""
    pass


class ServerError(ApiError):
    """5xx responses."""
    pass


@dataclass(frozen=True)
class Component:
    """A technology as the API represents it."""

    name: str
    version: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Component":
        return cls(name=str(data.get("name", "")), version=str(data.get("version", "")))


@dataclass
class TechStack:
    """Remote tech stack as returned by the API."""

    id: str = ""
    name: str = ""
    components: list[Component] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TechStack":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            components=[Component.from_dict(c) for c in data.get("components") or [] if isinstance(c, dict)],
        )


@dataclass
class TechStackResponse:
    """Envelope shared by the tech stack endpoints."""

    success: bool = False
    message: str = ""
    tech_stack: TechStack = field(default_factory=TechStack)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TechStackResponse":
        stack = data.get("tech_stack")
        return cls(
            success=bool(data.get("success", False)),
            message=str(data.get("message") or ""),
            tech_stack=TechStack.from_dict(stack if isinstance(stack, dict) else {}),
        )


def get_api_url(default: str = DEFAULT_API_URL) -> str:
    """API base URL from STD_API_URL or the given default."""
    return get_env_or_default("STD_API_URL", default).rstrip("/")


def tech_stack_url(api_url: str, uuid: str) -> str:
    """Browser URL of a tech stack."""
    return f"{api_url.rstrip('/')}/tech_stacks/{uuid}"


def convert_stack_to_components(stack: Mapping[str, StackEntry]) -> list[Component]:
    """Convert manifest stack entries to API components."""
    return [Component(name=name, version=entry.version) for name, entry in stack.items()]


def _error_for_status(status: int, body: bytes) -> ApiError:
    if status == 401:
        return AuthenticationError(
            "authentication failed: invalid or expired token\n\n"
            "Please update your token with: stacktodate global-config set",
            status,
        )
    if status == 404:
        return NotFoundError(
            "project not found: UUID does not exist\n\n"
            "Please check the UUID or create a new project",
            status,
        )
    if status == 422:
        message = ""
        try:
            payload = json.loads(body)
            if isinstance(payload, dict):
                message = str(payload.get("message") or "")
        except (json.JSONDecodeError, UnicodeDecodeError):
            pass
        if message:
            return ValidationError(f"validation error: {message}", status)
        return ValidationError("validation error: the server rejected your request", status)
    if status >= 500:
        return ServerError(
            f"StackToDate API is experiencing issues (status {status})\n\nPlease try again later",
            status,
        )
    return ApiError(f"API error (status {status}): {body.decode('utf-8', 'replace')}", status)


def make_api_request(
    method: str,
    url: str,
    token: str,
    payload: Any = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Send an authenticated JSON request.

    Args:
        method: HTTP method
        url: Absolute URL
        token: Bearer token
        payload: JSON-serializable request body, or None
        timeout: Optional deadline in seconds

    Returns:
        Decoded JSON object

    Raises:
        ApiError: On connection failure, non-2xx status or invalid JSON
    """
    data = json.dumps(payload).encode("utf-8") if payload is not None else None
    req = urllib.request.Request(
        url,
        data=data,
        method=method,
        headers={
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
            "User-Agent": USER_AGENT,
        },
    )

    logger.debug(f"{method} {url}")
    try:
        if timeout:
            response = urllib.request.urlopen(req, timeout=timeout)
        else:
            response = urllib.request.urlopen(req)
        with response:
            status = response.status
            body = response.read()
    except urllib.error.HTTPError as e:
        body = e.read() if e.fp else b""
        raise _error_for_status(e.code, body) from e
    except (urllib.error.URLError, OSError) as e:
        raise ApiConnectionError(
            f"failed to connect to StackToDate API: {e}\n\n"
            "Please check your internet connection and try again"
        ) from e

    if status not in (200, 201):
        raise _error_for_status(status, body)

    try:
        decoded = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ApiError(f"failed to parse API response: {e}", status) from e
    if not isinstance(decoded, dict):
        raise ApiError("failed to parse API response: expected an object", status)
    return decoded


def create_tech_stack(
    token: str,
    name: str,
    components: list[Component],
    api_url: str | None = None,
    timeout: float | None = None,
) -> TechStackResponse:
    """Create a tech stack and return it with its new id."""
    url = f"{api_url or get_api_url()}/api/tech_stacks"
    payload = {"tech_stack": {"name": name, "components": [c.to_dict() for c in components]}}

    response = TechStackResponse.from_dict(make_api_request("POST", url, token, payload, timeout))
    if not response.success:
        raise ApiError(f"API error: {response.message}")
    if not response.tech_stack.id:
        raise ApiError("API response missing project ID")
    return response


def get_tech_stack(
    token: str,
    uuid: str,
    api_url: str | None = None,
    timeout: float | None = None,
) -> TechStackResponse:
    """Fetch an existing tech stack by id."""
    url = f"{api_url or get_api_url()}/api/tech_stacks/{uuid}"

    response = TechStackResponse.from_dict(make_api_request("GET", url, token, None, timeout))
    if not response.tech_stack.id:
        raise ApiError("API response missing project ID")
    return response


def push_components(
    token: str,
    uuid: str,
    components: list[Component],
    api_url: str | None = None,
    timeout: float | None = None,
) -> TechStackResponse:
    """Replace a tech stack's components."""
    url = f"{api_url or get_api_url()}/api/tech_stacks/{uuid}/components"
    payload = {"components": [c.to_dict() for c in components]}

    response = TechStackResponse.from_dict(make_api_request("PUT", url, token, payload, timeout))
    if not response.success:
        raise ApiError(f"API returned success=false: {response.message}")
    return response
