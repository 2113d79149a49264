"""Entity kinds exposed by the provider and the mapping between tracked
state and the entities sent over the wire.

A kind is described once (endpoint path, JSON:API type, attribute schema,
immutable fields) and every lifecycle handler works off that description.
"""

from typing import Any, Dict, FrozenSet, List, Optional, Self

ID_ATTRIBUTE = "id"
ORGANIZATION_ATTRIBUTE = "organization_id"

ZERO_VALUES = {bool: False, str: "", int: 0}


class Attribute:
    """One user-facing attribute of an entity kind."""

    def __init__(
        self: Self,
        name: str,
        value_type: type,
        description: str,
        wire_name: Optional[str] = None,
        required: bool = True,
        default: Any = None,
        requires_replace: bool = False
    ) -> None:
        """Describe an attribute.

        Args:
            name: Attribute name in configuration and state.
            value_type: One of bool, str, int.
            description: Help text shown in schemas and CLI options.
            wire_name: JSON:API attribute name; defaults to ``name``.
            required: Whether configuration must set it.
            default: Value the schema applies when an optional attribute is omitted.
            requires_replace: Whether changing it forces delete and create.
        """
        self.name = name
        self.value_type = value_type
        self.description = description
        self.wire_name = wire_name or name
        self.required = required
        self.default = default
        self.requires_replace = requires_replace

    @property
    def zero_value(self: Self) -> Any:
        return ZERO_VALUES[self.value_type]

    def __repr__(self: Self) -> str:
        return f"Attribute({self.name!r}, {self.value_type.__name__})"


class Entity:
    """A server-side record as carried in a JSON:API document."""

    def __init__(self: Self, type_name: str, entity_id: Optional[str] = None,
                 attributes: Optional[Dict[str, Any]] = None) -> None:
        self.type_name = type_name
        self.id = entity_id
        self.attributes = dict(attributes or {})

    def __eq__(self: Self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return (self.type_name, self.id, self.attributes) == (other.type_name, other.id, other.attributes)

    def __repr__(self: Self) -> str:
        return f"Entity({self.type_name!r}, id={self.id!r}, attributes={self.attributes!r})"


class EntityKind:
    """Descriptor for one resource kind."""

    def __init__(
        self: Self,
        name: str,
        type_name: str,
        path: str,
        description: str,
        attributes: List[Attribute],
        immutable: FrozenSet[str] = frozenset()
    ) -> None:
        self.name = name
        self.type_name = type_name
        self.path = path
        self.description = description
        self.attributes = attributes
        self.immutable = immutable

    @property
    def title(self: Self) -> str:
        return self.name.capitalize()

    def state_names(self: Self) -> List[str]:
        """Every name tracked in state, identifiers first."""
        return [ID_ATTRIBUTE, ORGANIZATION_ATTRIBUTE] + [a.name for a in self.attributes]

    def to_entity(self: Self, values: Dict[str, Any], prior: Optional[Dict[str, Any]] = None) -> Entity:
        """Build the outbound entity from planned values.

        Values are copied as given; defaults were applied by the schema
        before reaching this point. With ``prior`` the identifier and the
        immutable fields are taken from the previously tracked state.
        """
        attributes = {}
        for attribute in self.attributes:
            source = prior if prior is not None and attribute.name in self.immutable else values
            attributes[attribute.wire_name] = source.get(attribute.name)

        entity_id = prior.get(ID_ATTRIBUTE) if prior is not None else None
        return Entity(self.type_name, entity_id, attributes)

    def apply_entity(self: Self, values: Dict[str, Any], entity: Entity) -> Dict[str, Any]:
        """Overwrite tracked values with what the server returned.

        Returns a new dict; every attribute and the identifier are replaced,
        attributes the server left out become their zero value.
        """
        result = dict(values)
        result[ID_ATTRIBUTE] = entity.id
        for attribute in self.attributes:
            result[attribute.name] = entity.attributes.get(attribute.wire_name, attribute.zero_value)
        return result

    def __repr__(self: Self) -> str:
        return f"EntityKind({self.name!r})"


def _permission(name: str, wire_name: str, description: str) -> Attribute:
    return Attribute(name, bool, description, wire_name=wire_name, required=False, default=False)


TEAM = EntityKind(
    name="team",
    type_name="team",
    path="team",
    description="Create a team and bind it to an organization. Allows for fined grained access management.",
    attributes=[
        Attribute("name", str, "Team name", requires_replace=True),
        _permission("manage_state", "manageState", "Allow to manage Terraform/OpenTofu state"),
        _permission("manage_workspace", "manageWorkspace", "Allow to manage workspaces"),
        _permission("manage_module", "manageModule", "Allow to manage modules"),
        _permission("manage_provider", "manageProvider", "Allow to manage providers"),
        _permission("manage_vcs", "manageVcs", "Allow to manage vcs connections"),
        _permission("manage_template", "manageTemplate", "Allow to manage templates"),
        _permission("manage_job", "manageJob", "Allow to manage and trigger jobs"),
        _permission("manage_collection", "manageCollection", "Allow to manage variables collection"),
    ],
    immutable=frozenset({"name"}),
)

MODULE = EntityKind(
    name="module",
    type_name="module",
    path="module",
    description="Register a module in the organization private registry.",
    attributes=[
        Attribute("name", str, "Module name"),
        Attribute("description", str, "Module description"),
        Attribute("provider_name", str, "Module provider name. Example: azurerm, google, aws, etc",
                  wire_name="provider"),
        Attribute("source", str, "Source (git using https or ssh protocol)"),
    ],
    immutable=frozenset({"name"}),
)

COLLECTION = EntityKind(
    name="collection",
    type_name="collection",
    path="collection",
    description="Create a variables collection that can be shared between workspaces.",
    attributes=[
        Attribute("name", str, "Collection name"),
        Attribute("description", str, "Collection description"),
        Attribute("priority", int, "Collection priority, higher values win when variables overlap"),
    ],
)

KINDS: Dict[str, EntityKind] = {kind.name: kind for kind in (TEAM, MODULE, COLLECTION)}


def get_kind(name: str) -> EntityKind:
    """Look up an entity kind by name."""
    try:
        return KINDS[name]
    except KeyError:
        raise KeyError(f"Unknown resource kind: {name}") from None
