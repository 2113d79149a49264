"""Terrakube provider: team, module and collection resources for the Terrakube API."""

__version__ = "0.1.0"

from .diagnostics import Diagnostics, OperationResponse, ResourceState  # noqa: E402
from .entities import COLLECTION, KINDS, MODULE, TEAM, EntityKind  # noqa: E402
from .provider import ConnectionData, Provider  # noqa: E402
from .resources import EntityResource, parse_import_identifier  # noqa: E402

__all__ = [
    'COLLECTION',
    'ConnectionData',
    'Diagnostics',
    'EntityKind',
    'EntityResource',
    'KINDS',
    'MODULE',
    'OperationResponse',
    'Provider',
    'ResourceState',
    'TEAM',
    'parse_import_identifier',
]
