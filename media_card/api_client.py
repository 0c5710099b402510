"""
Remote service client.

Provides the remote-call abstraction used by the enricher, the existence
checker and the index providers, plus a concrete client for the Home
Assistant REST API. Service responses are returned unwrapped from their
"response"/"service_response" envelopes.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from media_card import __version__

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

SERVICES_PATH = "/api/services"
DEFAULT_TIMEOUT = 30.0  # seconds
USER_AGENT = f"MediaCard/{__version__}"

MEDIA_INDEX_DOMAIN = "media_index"


# ============================================================================
# Exceptions
# ============================================================================


class ApiError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConnectionError(ApiError):
    """Raised when connection to server fails or times out."""

    pass


class AuthenticationError(ApiError):
    """Raised when authentication fails (invalid access token)."""

    pass


class ServiceNotFoundError(ApiError):
    """Raised when the requested service is not registered on the server."""

    pass


# ============================================================================
# Helpers
# ============================================================================


def unwrap_response(payload: Any) -> Any:
    """
    Strip the envelope from a service response.

    Args:
        payload: Raw response body

    Returns:
        The "response" or "service_response" member if present, else payload
    """
    if isinstance(payload, dict):
        for key in ("response", "service_response"):
            if payload.get(key):
                return payload[key]
    return payload


def media_path_field(reference: str) -> Dict[str, str]:
    """
    Build the path argument for single-file index services.

    Args:
        reference: File path or media-source URI

    Returns:
        {"media_source_uri": ...} for media-source URIs, else {"file_path": ...}
    """
    if reference.startswith("media-source://"):
        return {"media_source_uri": reference}
    return {"file_path": reference}


def entity_target(entity_id: Optional[str]) -> Optional[Dict[str, str]]:
    """Build a service target for an optional entity id."""
    return {"entity_id": entity_id} if entity_id else None


# ============================================================================
# RemoteClient Interface
# ============================================================================


class RemoteClient(ABC):
    """
    Abstract remote-call interface.

    Implementations invoke a named service and return its (unwrapped)
    response. Transport failures raise ConnectionError so callers can
    retry them.
    """

    @abstractmethod
    async def call_service(
        self,
        domain: str,
        service: str,
        service_data: Optional[Dict[str, Any]] = None,
        target: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Call a remote service and return its response.

        Args:
            domain: Service domain (e.g. "media_index")
            service: Service name (e.g. "get_file_metadata")
            service_data: Service arguments
            target: Optional target selector ({"entity_id": ...})

        Returns:
            Unwrapped service response

        Raises:
            ConnectionError: If the server cannot be reached
            ApiError: If the server rejects the call
        """
        pass

    async def close(self) -> None:
        """Release client resources."""
        pass


# ============================================================================
# HomeAssistantClient Class
# ============================================================================


class HomeAssistantClient(RemoteClient):
    """
    HTTP client for the Home Assistant REST API.

    Attributes:
        server_url: Base URL of the Home Assistant instance
    """

    def __init__(
        self,
        server_url: str,
        access_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the API client.

        Args:
            server_url: Base URL of the Home Assistant instance
            access_token: Long-lived access token
            timeout: Request timeout in seconds

        Raises:
            ValueError: If server_url is empty
        """
        if not server_url:
            raise ValueError("server_url is required")

        self._server_url = server_url.rstrip("/")

        headers = {
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self._client = httpx.AsyncClient(
            base_url=self._server_url,
            headers=headers,
            timeout=timeout,
        )

    @property
    def server_url(self) -> str:
        """Get the server URL."""
        return self._server_url

    async def call_service(
        self,
        domain: str,
        service: str,
        service_data: Optional[Dict[str, Any]] = None,
        target: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Call a service with return_response enabled.

        The REST API takes target selectors in the request body alongside
        the service data.

        Raises:
            ConnectionError: If connection to server fails
            AuthenticationError: If the access token is rejected
            ServiceNotFoundError: If the service does not exist
            ApiError: If the call fails for another reason
        """
        payload = dict(service_data or {})
        if target:
            payload.update(target)

        try:
            response = await self._client.post(
                f"{SERVICES_PATH}/{domain}/{service}",
                params={"return_response": ""},
                json=payload,
            )
        except httpx.ConnectError as e:
            raise ConnectionError(f"Failed to connect to server: {e}")
        except httpx.TimeoutException as e:
            raise ConnectionError(f"Connection timed out: {e}")
        except httpx.TransportError as e:
            raise ConnectionError(f"Transport error: {e}")
        except httpx.HTTPError as e:
            raise ConnectionError(f"Request failed: {e}")

        if response.status_code == 200:
            try:
                return unwrap_response(response.json())
            except ValueError:
                raise ApiError(
                    f"Invalid JSON in {domain}.{service} response", status_code=200
                )
        elif response.status_code == 401:
            raise AuthenticationError("Invalid access token", status_code=401)
        elif response.status_code == 404:
            raise ServiceNotFoundError(
                f"Service not found: {domain}.{service}", status_code=404
            )
        elif response.status_code == 400:
            try:
                detail = response.json().get("message", "Invalid request")
            except Exception:
                detail = "Invalid request"
            raise ApiError(detail, status_code=400)
        else:
            raise ApiError(
                f"{domain}.{service} failed with status {response.status_code}",
                status_code=response.status_code,
            )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "HomeAssistantClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
