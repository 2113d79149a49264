"""Command line host for the Terrakube provider resources."""

import sys
from typing import Any, Callable, Dict, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from . import __version__
from .config import Config, ConfigError
from .diagnostics import Diagnostics, OperationResponse, ResourceState
from .entities import ID_ATTRIBUTE, KINDS, ORGANIZATION_ATTRIBUTE, Attribute, EntityKind
from .errors import ErrorHandler
from .provider import Provider
from .schema import ACTION_NOOP, ACTION_REPLACE, plan_resource
from .ui.display import display_state, display_state_json
from .validators import InputValidator, ValidationError

console = Console()
error_handler = ErrorHandler()


def confirm_destructive_action(action: str, resource: str, force: bool = False) -> bool:
    """Confirm destructive actions with user.

    Args:
        action: The action being performed (e.g., "delete", "replace").
        resource: The resource being acted upon.
        force: Whether to skip confirmation.

    Returns:
        True if action should proceed, False otherwise.
    """
    if force:
        return True

    console.print(
        Panel(
            f"[bold red]Warning:[/bold red] You are about to {action} '{resource}'.\n"
            f"This action cannot be undone.",
            title="Confirmation Required",
            border_style="red"
        )
    )

    return Confirm.ask(f"Are you sure you want to {action} '{resource}'?", default=False)


def get_provider() -> Provider:
    """Get a configured provider or exit with the configuration diagnostics."""
    provider = Provider(Config())
    diagnostics = Diagnostics()
    if provider.configure(diagnostics=diagnostics) is None:
        error_handler.display_diagnostics(diagnostics)
        sys.exit(1)
    return provider


def exit_on_errors(diagnostics: Diagnostics) -> None:
    """Render diagnostics and exit with status 1 if any is an error."""
    error_handler.display_diagnostics(diagnostics)
    if diagnostics.has_error():
        sys.exit(1)


def show_result(kind: EntityKind, response: OperationResponse, as_json: bool) -> None:
    exit_on_errors(response.diagnostics)
    if as_json:
        display_state_json(response.state.get())
    else:
        display_state(kind, response.state.get())


def _attribute_option(attribute: Attribute) -> Callable[[Any], Any]:
    flag = attribute.name.replace('_', '-')
    if attribute.value_type is bool:
        return click.option(f'--{flag}/--no-{flag}', attribute.name, default=None,
                            help=f"{attribute.description} (default: {str(attribute.default).lower()})")
    return click.option(f'--{flag}', attribute.name, type=attribute.value_type, default=None,
                        help=attribute.description)


def attribute_options(kind: EntityKind) -> Callable[[Any], Any]:
    """Add one option per kind attribute to a command."""
    def decorator(func: Any) -> Any:
        for attribute in reversed(kind.attributes):
            func = _attribute_option(attribute)(func)
        return func
    return decorator


def _given(kind: EntityKind, options: Dict[str, Any]) -> Dict[str, Any]:
    return {a.name: options[a.name] for a in kind.attributes if options.get(a.name) is not None}


def build_kind_group(kind: EntityKind) -> click.Group:
    """Build the create/read/update/delete/import commands for one kind."""

    @click.group(name=kind.name, help=kind.description)
    def group() -> None:
        pass

    organization_option = click.option('--organization-id', '--org', 'organization_id', required=True,
                                       help='Terrakube organization id')
    id_option = click.option('--id', 'entity_id', required=True, help=f'{kind.title} id')
    json_option = click.option('--json', 'as_json', is_flag=True, help='Print state as JSON')

    @group.command(help=f"Create a {kind.name}.")
    @organization_option
    @attribute_options(kind)
    @json_option
    def create(organization_id: str, as_json: bool, **options: Any) -> None:
        change = plan_resource(kind, {ORGANIZATION_ATTRIBUTE: organization_id, **options})
        exit_on_errors(change.diagnostics)

        with get_provider() as provider:
            resource = provider.resource(kind.name)
            with console.status(f"[cyan]Creating {kind.name}...", spinner="dots"):
                response = resource.create(change.plan)
        show_result(kind, response, as_json)

    @group.command(help=f"Show the current server state of a {kind.name}.")
    @organization_option
    @id_option
    @json_option
    def read(organization_id: str, entity_id: str, as_json: bool) -> None:
        state = ResourceState({ORGANIZATION_ATTRIBUTE: organization_id, ID_ATTRIBUTE: entity_id})
        with get_provider() as provider:
            with console.status(f"[cyan]Reading {kind.name} {entity_id}...", spinner="dots"):
                response = provider.resource(kind.name).read(state)

        if response.ok and response.state.is_absent:
            console.print(f"[yellow]{kind.title} {entity_id} no longer exists.[/yellow]")
            return
        show_result(kind, response, as_json)

    @group.command(help=f"Update a {kind.name} in place. Omitted options keep their current value.")
    @organization_option
    @id_option
    @attribute_options(kind)
    @click.option('--force', is_flag=True, help='Replace without confirmation when required')
    @json_option
    def update(organization_id: str, entity_id: str, force: bool, as_json: bool, **options: Any) -> None:
        with get_provider() as provider:
            resource = provider.resource(kind.name)
            current = resource.read(ResourceState({ORGANIZATION_ATTRIBUTE: organization_id,
                                                   ID_ATTRIBUTE: entity_id}))
            exit_on_errors(current.diagnostics)
            if current.state.is_absent:
                console.print(f"[red]Error:[/red] {kind.title} {entity_id} does not exist.")
                sys.exit(1)

            config = {**current.state.get(), **_given(kind, options)}
            change = plan_resource(kind, config, current.state)
            exit_on_errors(change.diagnostics)

            if change.action == ACTION_NOOP:
                if not as_json:
                    console.print("[green]No changes.[/green]")
                show_result(kind, current, as_json)
                return

            if change.action == ACTION_REPLACE:
                reasons = ", ".join(change.replace_reasons)
                console.print(f"[yellow]Changing {reasons} forces replacement.[/yellow]")
                if not confirm_destructive_action("replace", f"{kind.name} {entity_id}", force):
                    console.print("[yellow]Operation cancelled[/yellow]")
                    return
                removed = resource.delete(current.state)
                exit_on_errors(removed.diagnostics)
                response = resource.create(change.plan)
            else:
                with console.status(f"[cyan]Updating {kind.name} {entity_id}...", spinner="dots"):
                    response = resource.update(change.plan, current.state)
        show_result(kind, response, as_json)

    @group.command(help=f"Delete a {kind.name}.")
    @organization_option
    @id_option
    @click.option('--force', is_flag=True, help='Skip confirmation')
    def delete(organization_id: str, entity_id: str, force: bool) -> None:
        if not confirm_destructive_action("delete", f"{kind.name} {entity_id}", force):
            console.print("[yellow]Operation cancelled[/yellow]")
            return

        state = ResourceState({ORGANIZATION_ATTRIBUTE: organization_id, ID_ATTRIBUTE: entity_id})
        with get_provider() as provider:
            response = provider.resource(kind.name).delete(state)
        exit_on_errors(response.diagnostics)
        console.print(f"[green]✓[/green] {kind.title} {entity_id} deleted")

    @group.command(name='import', help=f"Import an existing {kind.name} by 'organization_id,id'.")
    @click.argument('import_id')
    @json_option
    def import_(import_id: str, as_json: bool) -> None:
        with get_provider() as provider:
            resource = provider.resource(kind.name)
            imported = resource.import_state(import_id)
            exit_on_errors(imported.diagnostics)

            response = resource.read(imported.state)
        if response.ok and response.state.is_absent:
            console.print(f"[red]Error:[/red] Cannot import non-existent remote object {import_id}")
            sys.exit(1)
        show_result(kind, response, as_json)

    return group


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Terrakube provider - manage teams, modules and collections."""
    pass


@main.command(name='config')
@click.option('--endpoint', help='Terrakube API URL (e.g., https://terrakube-api.example.com)')
@click.option('--token', help='Personal access token')
@click.option('--insecure/--secure', 'insecure', default=None, help='Skip TLS certificate verification')
@click.option('--list-backups', is_flag=True, help='List saved configuration backups')
@click.option('--restore', 'restore', is_flag=True, help='Restore the most recent backup (or --backup)')
@click.option('--backup', 'backup_timestamp', help='Backup timestamp to restore, as shown by --list-backups')
@click.option('--reset', is_flag=True, help='Reset settings to defaults, keeping a backup')
@click.option('--force', is_flag=True, help='Skip confirmation for --restore and --reset')
def config_cmd(endpoint: Optional[str], token: Optional[str], insecure: Optional[bool], list_backups: bool,
               restore: bool, backup_timestamp: Optional[str], reset: bool, force: bool) -> None:
    """Show or save the provider connection settings."""
    config = Config()

    if list_backups:
        backups = config.list_backups()
        if not backups:
            console.print("[yellow]No configuration backups found.[/yellow]")
        for timestamp in backups:
            console.print(timestamp)
        return

    try:
        if restore or backup_timestamp:
            if not confirm_destructive_action("restore", backup_timestamp or "the latest backup", force):
                console.print("[yellow]Operation cancelled[/yellow]")
                return
            config.restore_from_backup(backup_timestamp)
            console.print("[green]✓[/green] Configuration restored from backup")
            return

        if reset:
            if not confirm_destructive_action("reset", str(config.config_file), force):
                console.print("[yellow]Operation cancelled[/yellow]")
                return
            config.reset()
            console.print("[green]✓[/green] Configuration reset to defaults")
            return
    except ConfigError as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        sys.exit(1)

    if endpoint is None and token is None and insecure is None:
        current_endpoint = config.get_endpoint()
        current_token = config.get_token()

        if current_endpoint:
            console.print(f"[green]Endpoint:[/green] {current_endpoint}")
        if current_token:
            masked_token = current_token[:4] + "..." + current_token[-4:]
            console.print(f"[green]Token:[/green] {masked_token}")
        console.print(f"[green]Insecure HTTP client:[/green] {config.get('insecure_http_client', False)}")

        if not config.is_configured():
            console.print("\n[yellow]Not fully configured.[/yellow]")
            console.print("Usage: [cyan]terrakube config --endpoint <URL> --token <TOKEN>[/cyan]")
        return

    try:
        if endpoint is not None:
            validated_endpoint = InputValidator.validate_url(endpoint)
            config.set('endpoint', validated_endpoint)
            console.print(f"[green]✓[/green] Endpoint set to: {validated_endpoint}")

        if token is not None:
            config.set('token', InputValidator.validate_api_token(token))
            console.print("[green]✓[/green] Token saved")

        if insecure is not None:
            config.set('insecure_http_client', insecure)
            console.print(f"[green]✓[/green] Insecure HTTP client: {insecure}")

    except ValidationError as e:
        console.print(f"[red]Validation Error:[/red] {e}")
        sys.exit(1)
    except ConfigError as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        sys.exit(1)


for _kind in KINDS.values():
    main.add_command(build_kind_group(_kind))


if __name__ == '__main__':
    main()
