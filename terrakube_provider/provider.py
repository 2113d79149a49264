"""Provider configuration and resource registry."""

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Self

from .api import TerrakubeAPIClient
from .config import Config
from .diagnostics import Diagnostics
from .entities import KINDS
from .errors import ConfigurationError
from .provider_logging import get_provider_logger
from .validators import InputValidator, ValidationError

if TYPE_CHECKING:
    from .resources import EntityResource

PROVIDER_TYPE_NAME = "terrakube"

ENDPOINT_ENV = "TERRAKUBE_ENDPOINT"
TOKEN_ENV = "TERRAKUBE_TOKEN"
INSECURE_ENV = "TERRAKUBE_INSECURE_HTTP_CLIENT"

TRUE_STRINGS = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ConnectionData:
    """Connection settings shared by every resource of a provider.

    The fields are read-only after construction. The wrapped
    ``requests.Session`` is not thread-safe, so one ConnectionData is only
    used from a single thread.
    """

    endpoint: str
    token: str = field(repr=False)
    insecure_http_client: bool = False
    timeout: Optional[float] = 30
    client: TerrakubeAPIClient = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.client is None:
            client = TerrakubeAPIClient(self.endpoint, self.token, self.insecure_http_client, self.timeout)
            object.__setattr__(self, "client", client)


class Provider:
    """Entry point the host uses to configure connections and build resources."""

    def __init__(self: Self, config: Optional[Config] = None) -> None:
        self.config = config
        self.connection: Optional[ConnectionData] = None
        self.logger = get_provider_logger()

    @property
    def type_name(self: Self) -> str:
        return PROVIDER_TYPE_NAME

    def _saved(self: Self, key: str) -> Optional[object]:
        if self.config is None:
            return None
        return self.config.get(key)

    def configure(
        self: Self,
        endpoint: Optional[str] = None,
        token: Optional[str] = None,
        insecure_http_client: Optional[bool] = None,
        diagnostics: Optional[Diagnostics] = None
    ) -> Optional[ConnectionData]:
        """Resolve connection settings and build the shared connection.

        Each setting comes from the argument, then the environment, then the
        saved configuration. Problems are reported on ``diagnostics`` and
        None is returned.
        """
        diagnostics = diagnostics if diagnostics is not None else Diagnostics()

        endpoint = endpoint or os.environ.get(ENDPOINT_ENV) or self._saved('endpoint')
        token = token or os.environ.get(TOKEN_ENV) or self._saved('token')

        if insecure_http_client is None:
            env_insecure = os.environ.get(INSECURE_ENV)
            if env_insecure is not None:
                insecure_http_client = env_insecure.strip().lower() in TRUE_STRINGS
            else:
                insecure_http_client = bool(self._saved('insecure_http_client'))

        timeout = self._saved('timeout') or 30

        if not endpoint:
            diagnostics.add_exception(ConfigurationError(
                "Missing Terrakube API endpoint",
                [f"Set the endpoint in the provider configuration or export {ENDPOINT_ENV}",
                 "Or save it: terrakube config --endpoint <URL>"]
            ))
        if not token:
            diagnostics.add_exception(ConfigurationError(
                "Missing Terrakube API token",
                [f"Set the token in the provider configuration or export {TOKEN_ENV}",
                 "Or save it: terrakube config --token <TOKEN>"]
            ))
        if diagnostics.has_error():
            self.logger.log_configure("provider", False, {"reason": "missing settings"})
            return None

        try:
            endpoint = InputValidator.validate_url(endpoint)
        except ValidationError as e:
            diagnostics.add_exception(ConfigurationError(str(e)))
            self.logger.log_configure("provider", False, {"reason": str(e)})
            return None

        self.connection = ConnectionData(endpoint, token, insecure_http_client, timeout)
        self.logger.log_configure("provider", True, {
            "endpoint": self.connection.endpoint,
            "insecure_http_client": insecure_http_client
        })
        return self.connection

    def resources(self: Self) -> List[Callable[..., "EntityResource"]]:
        """Factories for every resource this provider offers."""
        from .resources import RESOURCE_FACTORIES
        return list(RESOURCE_FACTORIES.values())

    def resource(self: Self, kind_name: str) -> "EntityResource":
        """Build a resource of the given kind bound to the configured connection."""
        from .resources import RESOURCE_FACTORIES
        if kind_name not in KINDS:
            raise KeyError(f"Unknown resource kind: {kind_name}")
        return RESOURCE_FACTORIES[kind_name](self.connection)

    def close(self: Self) -> None:
        if self.connection is not None and self.connection.client is not None:
            self.connection.client.close()

    def __enter__(self: Self) -> Self:
        return self

    def __exit__(self: Self, exc_type, exc_val, exc_tb) -> None:
        self.close()
