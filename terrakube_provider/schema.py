"""Plan step run by the host before calling a lifecycle handler.

Validates a declared configuration against the kind's schema, fills in
declared defaults, and decides whether the change is a create, an in-place
update, a replacement, or nothing at all. Handlers rely on this having
happened and never re-apply defaults themselves.
"""

from typing import Any, Dict, Optional, Self

from .diagnostics import Diagnostics, ResourceState
from .entities import ID_ATTRIBUTE, ORGANIZATION_ATTRIBUTE, EntityKind
from .validators import InputValidator

ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_REPLACE = "replace"
ACTION_NOOP = "noop"


class PlannedChange:
    """Outcome of planning one resource instance."""

    def __init__(self: Self, action: Optional[str], plan: ResourceState,
                 diagnostics: Diagnostics, replace_reasons: Optional[list] = None) -> None:
        self.action = action
        self.plan = plan
        self.diagnostics = diagnostics
        self.replace_reasons = replace_reasons or []

    def __repr__(self: Self) -> str:
        return f"PlannedChange({self.action!r}, {self.plan!r})"


def plan_resource(kind: EntityKind, config: Dict[str, Any],
                  prior: Optional[ResourceState] = None) -> PlannedChange:
    """Plan a configuration against the prior state, if any.

    Returns a change whose ``action`` is None when the configuration has
    errors.
    """
    diagnostics = Diagnostics()
    planned: Dict[str, Any] = {}

    organization_id = config.get(ORGANIZATION_ATTRIBUTE)
    if not isinstance(organization_id, str) or not organization_id:
        diagnostics.add_error("Missing required argument",
                              f"The argument \"{ORGANIZATION_ATTRIBUTE}\" is required.",
                              attribute=ORGANIZATION_ATTRIBUTE)
    planned[ORGANIZATION_ATTRIBUTE] = organization_id

    for attribute in kind.attributes:
        value = config.get(attribute.name)
        if value is None:
            if attribute.required:
                diagnostics.add_error("Missing required argument",
                                      f"The argument \"{attribute.name}\" is required.",
                                      attribute=attribute.name)
                continue
            value = attribute.default
        elif not InputValidator.is_value_of_type(value, attribute.value_type):
            diagnostics.add_error("Incorrect attribute value type",
                                  f"Attribute \"{attribute.name}\" must be {attribute.value_type.__name__}.",
                                  attribute=attribute.name)
            continue
        planned[attribute.name] = value

    if diagnostics.has_error():
        return PlannedChange(None, ResourceState(), diagnostics)

    if prior is None or prior.is_absent:
        planned[ID_ATTRIBUTE] = None
        return PlannedChange(ACTION_CREATE, ResourceState(planned), diagnostics)

    current = prior.get()
    # The identifier is computed; keep the known value.
    planned[ID_ATTRIBUTE] = current.get(ID_ATTRIBUTE)

    replace_reasons = []
    if current.get(ORGANIZATION_ATTRIBUTE) != planned[ORGANIZATION_ATTRIBUTE]:
        replace_reasons.append(ORGANIZATION_ATTRIBUTE)
    for attribute in kind.attributes:
        if attribute.requires_replace and current.get(attribute.name) != planned[attribute.name]:
            replace_reasons.append(attribute.name)

    if replace_reasons:
        planned[ID_ATTRIBUTE] = None
        return PlannedChange(ACTION_REPLACE, ResourceState(planned), diagnostics, replace_reasons)

    for attribute in kind.attributes:
        if attribute.name in kind.immutable and current.get(attribute.name) != planned[attribute.name]:
            diagnostics.add_warning(
                "Attribute cannot be changed in place",
                f"\"{attribute.name}\" keeps its current value {current.get(attribute.name)!r}; "
                f"recreate the {kind.name} to rename it.",
                attribute=attribute.name
            )

    mutable = [a for a in kind.attributes if a.name not in kind.immutable]
    if all(current.get(a.name) == planned[a.name] for a in mutable):
        return PlannedChange(ACTION_NOOP, ResourceState(current), diagnostics)

    return PlannedChange(ACTION_UPDATE, ResourceState(planned), diagnostics)
