"""Error taxonomy and diagnostic rendering for the Terrakube provider.

Every failure a lifecycle handler can hit is one of the exceptions below.
Handlers never let them escape to the host; they are turned into error
diagnostics on the resource instance. ``ErrorHandler`` renders those
diagnostics with contextual recovery suggestions.
"""

from typing import Any, Dict, List, Optional, Self

from rich.console import Console
from rich.panel import Panel

console = Console(stderr=True)


class ProviderError(Exception):
    """Base exception class for provider errors."""

    summary = "Terrakube provider error"

    def __init__(self: Self, message: str, suggestions: Optional[List[str]] = None) -> None:
        """Initialize provider error.

        Args:
            message: The error message to display.
            suggestions: Optional list of recovery suggestions.
        """
        super().__init__(message)
        self.message = message
        self.suggestions = suggestions or []


class EncodingError(ProviderError):
    """Raised when a request body cannot be serialized."""

    summary = "Unable to marshal payload"


class TransportError(ProviderError):
    """Raised when an HTTP exchange cannot complete or the server rejects it."""

    summary = "Error executing request"

    def __init__(
        self: Self,
        message: str,
        status_code: Optional[int] = None,
        suggestions: Optional[List[str]] = None
    ) -> None:
        super().__init__(message, suggestions)
        self.status_code = status_code


class DecodingError(ProviderError):
    """Raised when a response body is not the expected JSON:API document."""

    summary = "Error unmarshal payload response"


class RemoteNotFound(ProviderError):
    """Raised when the addressed entity no longer exists server-side."""

    summary = "Resource not found"


class InvalidImportIdentifier(ProviderError):
    """Raised when an import identifier is not 'organization_id,id'."""

    summary = "Unexpected Import Identifier"


class UnexpectedConfigurationType(ProviderError):
    """Raised when a resource is configured with the wrong provider data."""

    summary = "Unexpected Resource Configure Type"


class ConfigurationError(ProviderError):
    """Raised when provider connection settings are missing or invalid."""

    summary = "Invalid provider configuration"


class ErrorHandler:
    """Displays diagnostics with recovery suggestions."""

    def __init__(self: Self) -> None:
        """Initialize the error handler."""
        self.error_patterns: Dict[str, Dict[str, Any]] = {
            "connection_refused": {
                "keywords": ["connection refused", "connection error", "timed out", "timeout"],
                "suggestions": [
                    "Check that the Terrakube API is reachable at the configured endpoint",
                    "Verify the endpoint: terrakube config --endpoint <URL>",
                    "Use --insecure only if the API presents a self-signed certificate"
                ]
            },
            "authentication_failed": {
                "keywords": ["401", "unauthorized", "invalid token"],
                "suggestions": [
                    "Check your API token: terrakube config --token <TOKEN>",
                    "Generate a new personal access token in the Terrakube UI",
                    "Or export TERRAKUBE_TOKEN before running the command"
                ]
            },
            "permission_denied": {
                "keywords": ["403", "forbidden"],
                "suggestions": [
                    "Check that your team has the manage permission for this resource kind",
                    "Verify the organization id is the one your token belongs to"
                ]
            },
            "not_found": {
                "keywords": ["404", "not found"],
                "suggestions": [
                    "Check the organization id and resource id",
                    "The resource may have been deleted outside of Terraform"
                ]
            },
            "ssl_error": {
                "keywords": ["ssl", "certificate"],
                "suggestions": [
                    "Install the API certificate authority in your trust store",
                    "Or enable the insecure HTTP client: terrakube config --insecure"
                ]
            },
            "decoding": {
                "keywords": ["json:api", "unmarshal", "not valid json"],
                "suggestions": [
                    "Make sure the endpoint points at the Terrakube API, not the UI",
                    "Run with TERRAKUBE_LOG=DEBUG and inspect the logged response body"
                ]
            }
        }

    def identify_error_type(self: Self, error_message: str) -> Optional[str]:
        """Identify the type of error based on the message.

        Args:
            error_message: The error message to analyze.

        Returns:
            The error type key if identified, None otherwise.
        """
        error_lower = error_message.lower()

        for error_type, pattern_data in self.error_patterns.items():
            for keyword in pattern_data["keywords"]:
                if keyword in error_lower:
                    return error_type

        return None

    def get_suggestions(self: Self, error_message: str) -> List[str]:
        """Get recovery suggestions for an error message."""
        error_type = self.identify_error_type(error_message)

        if error_type:
            return self.error_patterns[error_type]["suggestions"]

        return [
            "Verify your configuration: terrakube config",
            "Run with TERRAKUBE_LOG=DEBUG and check ~/.terrakube/logs/provider.log"
        ]

    def display_error(
        self: Self,
        error: Exception,
        context: Optional[str] = None,
        show_suggestions: bool = True
    ) -> None:
        """Display an error with formatting and suggestions.

        Args:
            error: The exception that occurred.
            context: Optional context about what was being attempted.
            show_suggestions: Whether to show recovery suggestions.
        """
        error_message = str(error)
        content = []

        if context:
            content.append(f"[bold]Context:[/bold] {context}")
            content.append("")

        content.append(f"[bold red]Error:[/bold red] {error_message}")

        if show_suggestions:
            if isinstance(error, ProviderError) and error.suggestions:
                suggestions = error.suggestions
            else:
                suggestions = self.get_suggestions(error_message)

            if suggestions:
                content.append("")
                content.append("[bold blue]Suggested solutions:[/bold blue]")
                for i, suggestion in enumerate(suggestions, 1):
                    content.append(f"  {i}. {suggestion}")

        console.print(Panel(
            "\n".join(content),
            title="[bold red]Terrakube Provider Error[/bold red]",
            border_style="red",
            expand=False
        ))

    def display_diagnostics(self: Self, diagnostics: Any) -> None:
        """Render every diagnostic in a sink.

        Errors get a red panel with suggestions, warnings a yellow line.
        """
        for diagnostic in diagnostics:
            if diagnostic.is_error:
                self.display_error(
                    ProviderError(diagnostic.detail, diagnostic.suggestions),
                    context=diagnostic.summary
                )
            else:
                console.print(f"[yellow]Warning:[/yellow] {diagnostic.summary}: {diagnostic.detail}")
