"""UI components for the terrakube command line."""

from .display import display_state, display_state_json

__all__ = [
    'display_state',
    'display_state_json',
]
