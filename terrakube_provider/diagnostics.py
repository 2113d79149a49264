"""Diagnostics sink and per-instance state handed between host and resources."""

import copy
from typing import Any, Dict, Iterator, List, Optional, Self

from .errors import ProviderError

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


class Diagnostic:
    """A single user-visible message attached to a resource instance."""

    def __init__(
        self: Self,
        severity: str,
        summary: str,
        detail: str = "",
        attribute: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ) -> None:
        self.severity = severity
        self.summary = summary
        self.detail = detail
        self.attribute = attribute
        self.suggestions = suggestions or []

    @property
    def is_error(self: Self) -> bool:
        return self.severity == SEVERITY_ERROR

    def __repr__(self: Self) -> str:
        return f"Diagnostic({self.severity!r}, {self.summary!r}, {self.detail!r})"


class Diagnostics:
    """Ordered collection of diagnostics."""

    def __init__(self: Self) -> None:
        self._items: List[Diagnostic] = []

    def add_error(
        self: Self,
        summary: str,
        detail: str = "",
        attribute: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ) -> None:
        self._items.append(Diagnostic(SEVERITY_ERROR, summary, detail, attribute, suggestions))

    def add_warning(self: Self, summary: str, detail: str = "", attribute: Optional[str] = None) -> None:
        self._items.append(Diagnostic(SEVERITY_WARNING, summary, detail, attribute))

    def add_exception(self: Self, error: ProviderError, context: Optional[str] = None) -> None:
        """Record a provider error as an error diagnostic.

        Args:
            error: The failure to report.
            context: Optional prefix naming the resource kind, used in the summary.
        """
        summary = f"{context}: {error.summary}" if context else error.summary
        self.add_error(summary, error.message, suggestions=error.suggestions)

    def has_error(self: Self) -> bool:
        return any(item.is_error for item in self._items)

    def errors(self: Self) -> List[Diagnostic]:
        return [item for item in self._items if item.is_error]

    def warnings(self: Self) -> List[Diagnostic]:
        return [item for item in self._items if not item.is_error]

    def __iter__(self: Self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self: Self) -> int:
        return len(self._items)


class ResourceState:
    """Get-and-set view over the tracked values of one resource instance.

    ``None`` values mean the instance is absent from state (never created,
    deleted, or dropped after the remote entity disappeared).
    """

    def __init__(self: Self, values: Optional[Dict[str, Any]] = None) -> None:
        self._values = copy.deepcopy(values) if values is not None else None

    @property
    def is_absent(self: Self) -> bool:
        return self._values is None

    def get(self: Self) -> Dict[str, Any]:
        """Return a copy of the tracked values (empty when absent)."""
        return copy.deepcopy(self._values) if self._values is not None else {}

    def get_attribute(self: Self, name: str, default: Any = None) -> Any:
        if self._values is None:
            return default
        return self._values.get(name, default)

    def set(self: Self, values: Dict[str, Any]) -> None:
        """Replace the tracked values wholesale."""
        self._values = copy.deepcopy(values)

    def set_attribute(self: Self, name: str, value: Any) -> None:
        if self._values is None:
            self._values = {}
        self._values[name] = value

    def remove_resource(self: Self) -> None:
        self._values = None

    def __eq__(self: Self, other: object) -> bool:
        if not isinstance(other, ResourceState):
            return NotImplemented
        return self._values == other._values

    def __repr__(self: Self) -> str:
        return f"ResourceState({self._values!r})"


class OperationResponse:
    """Result of one lifecycle call: the new state plus diagnostics."""

    def __init__(self: Self, state: Optional[ResourceState] = None) -> None:
        self.state = state if state is not None else ResourceState()
        self.diagnostics = Diagnostics()

    @property
    def ok(self: Self) -> bool:
        return not self.diagnostics.has_error()
