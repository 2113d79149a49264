"""Lifecycle handlers for team, module and collection resources.

A single ``EntityResource`` implements create, read, update, delete and
import for every kind; the kind descriptor supplies the field set and the
endpoint path. Handlers never raise: failures become error diagnostics on
the returned ``OperationResponse`` and the tracked state is left as it was.
"""

from typing import Any, Callable, Dict, Optional, Self

from .api import EntityClient
from .diagnostics import Diagnostics, OperationResponse, ResourceState
from .entities import COLLECTION, ID_ATTRIBUTE, MODULE, ORGANIZATION_ATTRIBUTE, TEAM, EntityKind
from .errors import (
    InvalidImportIdentifier,
    ProviderError,
    RemoteNotFound,
    UnexpectedConfigurationType,
)
from .provider import PROVIDER_TYPE_NAME, ConnectionData
from .provider_logging import get_provider_logger


def parse_import_identifier(import_id: str) -> Dict[str, str]:
    """Split ``"<organization_id>,<id>"`` into its two identifier fields.

    Raises:
        InvalidImportIdentifier: Unless there are exactly two non-empty parts
    """
    parts = import_id.split(",")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidImportIdentifier(
            f"Expected import identifier with format: 'organization_ID,ID', Got: {import_id!r}",
            ["Use the organization id and the resource id separated by a comma, e.g. org1,team1"]
        )
    return {ORGANIZATION_ATTRIBUTE: parts[0], ID_ATTRIBUTE: parts[1]}


class EntityResource:
    """Reconciles one kind of Terrakube entity."""

    def __init__(self: Self, kind: EntityKind, connection: Optional[ConnectionData] = None) -> None:
        self.kind = kind
        self.client: Optional[EntityClient] = None
        self.logger = get_provider_logger()
        if connection is not None:
            self.client = EntityClient(connection.client, kind)

    @property
    def type_name(self: Self) -> str:
        return f"{PROVIDER_TYPE_NAME}_{self.kind.name}"

    def schema(self: Self) -> Dict[str, Any]:
        """Describe the resource attributes the way a host schema expects them."""
        attributes: Dict[str, Dict[str, Any]] = {
            ID_ATTRIBUTE: {"type": "string", "computed": True, "description": f"{self.kind.title} Id"},
            ORGANIZATION_ATTRIBUTE: {"type": "string", "required": True,
                                     "description": "Terrakube organization id"},
        }
        for attribute in self.kind.attributes:
            spec = {
                "type": {bool: "bool", str: "string", int: "number"}[attribute.value_type],
                "description": attribute.description,
            }
            if attribute.required:
                spec["required"] = True
            else:
                spec["optional"] = True
                spec["computed"] = True
                spec["default"] = attribute.default
            if attribute.requires_replace:
                spec["requires_replace"] = True
            attributes[attribute.name] = spec
        return {"description": self.kind.description, "attributes": attributes}

    def configure(self: Self, provider_data: Any) -> Diagnostics:
        """Bind the resource to the provider's shared connection.

        ``None`` means the host has not configured the provider yet and is
        ignored.
        """
        diagnostics = Diagnostics()
        if provider_data is None:
            return diagnostics

        if not isinstance(provider_data, ConnectionData):
            error = UnexpectedConfigurationType(
                f"Expected ConnectionData, got: {type(provider_data).__name__}. "
                "Please report this issue to the provider developers."
            )
            diagnostics.add_exception(error, self.kind.title)
            self.logger.log_configure(self.type_name, False, {"got": type(provider_data).__name__})
            return diagnostics

        self.client = EntityClient(provider_data.client, self.kind)
        self.logger.log_configure(self.type_name, True)
        return diagnostics

    def _require_client(self: Self, response: OperationResponse) -> bool:
        if self.client is None:
            response.diagnostics.add_error(
                f"{self.kind.title} resource is not configured",
                "The provider connection was not established before the resource was used."
            )
            return False
        return True

    def _fail(self: Self, response: OperationResponse, operation: str, error: ProviderError) -> OperationResponse:
        response.diagnostics.add_exception(error, self.kind.title)
        self.logger.log_resource_operation(self.kind.name, operation, False, {
            "error_type": type(error).__name__,
            "error_message": error.message
        })
        return response

    def create(self: Self, plan: ResourceState) -> OperationResponse:
        """Create the entity described by the plan.

        On failure the returned state stays absent.
        """
        response = OperationResponse()
        if not self._require_client(response):
            return response

        values = plan.get()
        try:
            entity = self.client.create(values.get(ORGANIZATION_ATTRIBUTE), self.kind.to_entity(values))
        except ProviderError as e:
            return self._fail(response, "create", e)

        response.state.set(self.kind.apply_entity(values, entity))
        self.logger.log_resource_operation(self.kind.name, "create", True, {"id": entity.id})
        return response

    def read(self: Self, state: ResourceState) -> OperationResponse:
        """Refresh tracked state from the server.

        A missing remote entity removes the instance from state instead of
        reporting an error.
        """
        response = OperationResponse(ResourceState(state.get()))
        if not self._require_client(response):
            return response

        values = state.get()
        try:
            entity = self.client.read(values.get(ORGANIZATION_ATTRIBUTE), values.get(ID_ATTRIBUTE))
        except RemoteNotFound as e:
            self.logger.log_warning(self.kind.name, "Removing resource from state", {"reason": e.message})
            response.state.remove_resource()
            return response
        except ProviderError as e:
            return self._fail(response, "read", e)

        response.state.set(self.kind.apply_entity(values, entity))
        self.logger.log_resource_operation(self.kind.name, "read", True, {"id": entity.id})
        return response

    def update(self: Self, plan: ResourceState, state: ResourceState) -> OperationResponse:
        """Replace every mutable attribute, then adopt the server's read-back.

        On failure the prior state is returned unchanged.
        """
        response = OperationResponse(ResourceState(state.get()))
        if not self._require_client(response):
            return response

        planned = plan.get()
        prior = state.get()
        entity_id = prior.get(ID_ATTRIBUTE)
        try:
            entity = self.client.update(
                prior.get(ORGANIZATION_ATTRIBUTE),
                entity_id,
                self.kind.to_entity(planned, prior)
            )
        except ProviderError as e:
            return self._fail(response, "update", e)

        values = self.kind.apply_entity(planned, entity)
        values[ID_ATTRIBUTE] = entity_id
        values[ORGANIZATION_ATTRIBUTE] = prior.get(ORGANIZATION_ATTRIBUTE)
        response.state.set(values)
        self.logger.log_resource_operation(self.kind.name, "update", True, {"id": entity_id})
        return response

    def delete(self: Self, state: ResourceState) -> OperationResponse:
        """Delete the entity and drop it from state."""
        response = OperationResponse(ResourceState(state.get()))
        if not self._require_client(response):
            return response

        values = state.get()
        try:
            self.client.delete(values.get(ORGANIZATION_ATTRIBUTE), values.get(ID_ATTRIBUTE))
        except ProviderError as e:
            return self._fail(response, "delete", e)

        response.state.remove_resource()
        self.logger.log_resource_operation(self.kind.name, "delete", True, {"id": values.get(ID_ATTRIBUTE)})
        return response

    def import_state(self: Self, import_id: str) -> OperationResponse:
        """Seed state from an ``organization_id,id`` identifier.

        Only the two identifiers are set; the host follows up with ``read``.
        """
        response = OperationResponse()
        try:
            identifiers = parse_import_identifier(import_id)
        except InvalidImportIdentifier as e:
            return self._fail(response, "import", e)

        response.state.set_attribute(ORGANIZATION_ATTRIBUTE, identifiers[ORGANIZATION_ATTRIBUTE])
        response.state.set_attribute(ID_ATTRIBUTE, identifiers[ID_ATTRIBUTE])
        return response

    def __repr__(self: Self) -> str:
        return f"EntityResource({self.type_name!r})"


def new_team_resource(connection: Optional[ConnectionData] = None) -> EntityResource:
    return EntityResource(TEAM, connection)


def new_module_resource(connection: Optional[ConnectionData] = None) -> EntityResource:
    return EntityResource(MODULE, connection)


def new_collection_resource(connection: Optional[ConnectionData] = None) -> EntityResource:
    return EntityResource(COLLECTION, connection)


RESOURCE_FACTORIES: Dict[str, Callable[[Optional[ConnectionData]], EntityResource]] = {
    TEAM.name: new_team_resource,
    MODULE.name: new_module_resource,
    COLLECTION.name: new_collection_resource,
}
