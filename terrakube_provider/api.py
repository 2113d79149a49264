"""HTTP client for the Terrakube REST API.

``TerrakubeAPIClient`` owns the one ``requests`` session shared by every
resource of a provider invocation. ``EntityClient`` performs the four
lifecycle exchanges for one entity kind on top of it.
"""

from typing import Optional, Self

import requests
from requests.adapters import HTTPAdapter

from . import __version__
from .entities import Entity, EntityKind
from .errors import RemoteNotFound, TransportError
from .jsonapi import MEDIA_TYPE, error_messages, marshal_payload, unmarshal_payload
from .provider_logging import get_provider_logger

API_PREFIX = "/api/v1"


class TerrakubeAPIClient:
    """Authenticated JSON:API session against one Terrakube endpoint."""

    def __init__(
        self: Self,
        endpoint: str,
        token: str,
        insecure_http_client: bool = False,
        timeout: Optional[float] = 30
    ) -> None:
        """Initialize API client.

        Args:
            endpoint: Base URL of the Terrakube API (e.g., https://terrakube-api.example.com)
            token: Personal access token sent as a bearer token
            insecure_http_client: Skip TLS certificate verification
            timeout: Transport timeout in seconds, None to wait forever
        """
        self.endpoint = endpoint.rstrip('/')
        self.token = token
        self.insecure_http_client = insecure_http_client
        self.timeout = timeout
        self.logger = get_provider_logger()
        self.session = requests.Session()

        self._setup_session()

    def _setup_session(self: Self) -> None:
        """Setup session with connection pooling and authentication headers."""
        # Lifecycle calls are never retried.
        adapter = HTTPAdapter(
            pool_connections=10,
            pool_maxsize=10,
            max_retries=0
        )
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.verify = not self.insecure_http_client
        self.session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'Content-Type': MEDIA_TYPE,
            'Accept': MEDIA_TYPE,
            'User-Agent': f'terrakube-provider/{__version__}'
        })

    def url(self: Self, path: str) -> str:
        return f"{self.endpoint}{API_PREFIX}{path}"

    def request(self: Self, method: str, path: str, body: Optional[bytes] = None) -> requests.Response:
        """Perform one HTTP exchange.

        Args:
            method: HTTP method
            path: Path below /api/v1
            body: Encoded request document, if any

        Returns:
            The response, whatever its status

        Raises:
            TransportError: If the exchange could not complete
        """
        url = self.url(path)
        self.logger.log_request(method, url)

        try:
            return self.session.request(method, url, data=body, timeout=self.timeout)
        except requests.exceptions.SSLError as e:
            self.logger.log_error("ssl_error", str(e), details={"url": url, "method": method})
            raise TransportError(f"SSL error talking to {url}: {e}")
        except requests.exceptions.Timeout as e:
            self.logger.log_error("request_timeout", str(e), details={"url": url, "method": method})
            raise TransportError(f"Request timeout: {e}")
        except requests.exceptions.ConnectionError as e:
            self.logger.log_error("connection_error", str(e), details={"url": url, "method": method})
            raise TransportError(f"Connection error: {e}")
        except requests.exceptions.RequestException as e:
            self.logger.log_error("request_error", str(e), details={"url": url, "method": method})
            raise TransportError(f"Error executing {method} {url}: {e}")

    def close(self: Self) -> None:
        """Close the session and cleanup resources."""
        if self.session:
            self.session.close()

    def __enter__(self: Self) -> Self:
        return self

    def __exit__(self: Self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def read_body(response: requests.Response) -> bytes:
    """Return the full response body.

    Raises:
        TransportError: If the body could not be read off the wire
    """
    try:
        return response.content
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Error reading response body: {e}", status_code=response.status_code)


class EntityClient:
    """Create, read, update and delete entities of one kind."""

    def __init__(self: Self, api: TerrakubeAPIClient, kind: EntityKind) -> None:
        self.api = api
        self.kind = kind
        self.logger = api.logger

    def collection_path(self: Self, organization_id: str) -> str:
        return f"/organization/{organization_id}/{self.kind.path}"

    def entity_path(self: Self, organization_id: str, entity_id: str) -> str:
        return f"{self.collection_path(organization_id)}/{entity_id}"

    def _exchange(self: Self, method: str, path: str, body: Optional[bytes] = None,
                  body_required: bool = True) -> Optional[bytes]:
        """Send a request and check its status.

        When ``body_required`` is False a failure to read the response body
        is logged and ``None`` is returned instead of raising.
        """
        response = self.api.request(method, path, body)
        url = self.api.url(path)

        try:
            content = read_body(response)
        except TransportError as e:
            if body_required or response.status_code >= 400:
                raise
            self.logger.log_error("body_read_error", e.message, resource=self.kind.name,
                                  details={"url": url, "method": method})
            return None

        self.logger.log_response(method, url, response.status_code, content.decode("utf-8", "replace"))

        if response.status_code == 404:
            raise RemoteNotFound(f"{self.kind.title} not found at {url}")

        if response.status_code >= 400:
            details = error_messages(content) or [content.decode("utf-8", "replace").strip() or response.reason or ""]
            raise TransportError(
                f"{method} {url} failed with HTTP {response.status_code}: {'; '.join(d for d in details if d)}",
                status_code=response.status_code
            )

        return content

    def create(self: Self, organization_id: str, entity: Entity) -> Entity:
        """Create an entity; the server assigns its identifier.

        Raises:
            EncodingError, TransportError, DecodingError
        """
        outbound = Entity(entity.type_name, None, entity.attributes)
        body = marshal_payload(outbound, self.kind)
        content = self._exchange("POST", self.collection_path(organization_id), body)
        return unmarshal_payload(content, self.kind)

    def read(self: Self, organization_id: str, entity_id: str) -> Entity:
        """Fetch the current server representation.

        Raises:
            RemoteNotFound: If the entity does not exist
            TransportError, DecodingError
        """
        content = self._exchange("GET", self.entity_path(organization_id, entity_id))
        return unmarshal_payload(content, self.kind)

    def update(self: Self, organization_id: str, entity_id: str, entity: Entity) -> Entity:
        """Patch an entity, then return a fresh read of it.

        The patch response may be partial, so its body is only logged and
        the returned entity always comes from the follow-up GET.
        """
        outbound = Entity(entity.type_name, entity_id, entity.attributes)
        body = marshal_payload(outbound, self.kind)
        self._exchange("PATCH", self.entity_path(organization_id, entity_id), body, body_required=False)
        return self.read(organization_id, entity_id)

    def delete(self: Self, organization_id: str, entity_id: str) -> None:
        """Delete an entity. An entity that is already gone counts as deleted."""
        try:
            self._exchange("DELETE", self.entity_path(organization_id, entity_id), body_required=False)
        except RemoteNotFound:
            self.logger.log_warning(self.kind.name, f"{self.kind.title} {entity_id} was already deleted")

    def __repr__(self: Self) -> str:
        return f"EntityClient({self.kind.name!r}, {self.api.endpoint!r})"

