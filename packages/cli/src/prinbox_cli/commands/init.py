"""init command: choose what to watch and where read state lives.

Writes the store backend to .prinbox.yml and the watched organization and
authors to the settings blob in that store, so later commands need no
arguments.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
import yaml
from github import GithubException
from rich.console import Console

from prinbox_store.models import ViewerSettings
from prinbox_store.settings import SettingsStore

console = Console()
logger = logging.getLogger(__name__)


def _split_usernames(raw: str) -> list[str]:
    seen: dict[str, None] = {}
    for name in raw.replace(",", " ").split():
        seen.setdefault(name.lstrip("@"), None)
    return list(seen)


@click.command("init")
@click.option("--org", "organization", default=None, help="GitHub organization to watch.")
@click.option("--user", "users", multiple=True, help="Author to watch (repeatable).")
@click.option(
    "--store",
    "store_type",
    type=click.Choice(["file", "sqlite", "gist", "memory"]),
    default=None,
    help="Where read state is kept.",
)
@click.pass_context
def init_cmd(ctx, organization: str | None, users, store_type: str | None):
    """Set up prinbox: organization, authors and read-state store."""
    from prinbox_cli.cli import _build_store

    config = ctx.obj["config"]
    config_path = ctx.obj.get("config_path", ".prinbox.yml")
    console.print("\n[bold cyan]prinbox init[/bold cyan]\n")

    if organization is None:
        organization = click.prompt("GitHub organization", default=config.get("organization") or None)
    usernames = list(users) or _split_usernames(
        click.prompt("Authors to watch (comma or space separated)", default=" ".join(config.get("usernames") or []))
    )
    if not usernames:
        raise click.UsageError("At least one author is required.")

    # --- Choose store backend ---
    if store_type is None:
        console.print("\nRead-state store:")
        console.print("  [bold]file[/bold]   : JSON files in ~/.prinbox (default)")
        console.print("  [bold]sqlite[/bold] : local SQLite file")
        console.print("  [bold]gist[/bold]   : private GitHub Gist (token needs the gist scope)")
        console.print("  [bold]memory[/bold] : nothing is saved between runs")
        store_type = click.prompt(
            "Store backend",
            type=click.Choice(["file", "sqlite", "gist", "memory"]),
            default=config.get("store", "file"),
        )

    file_config: dict = {"store": store_type}
    if store_type == "gist" and not config.get("gist_id"):
        gist_id = _create_gist(config.get("github_token"))
        if gist_id:
            console.print(f"[green]Created private Gist: {gist_id}[/green]")
            file_config["gist_id"] = gist_id
        else:
            console.print("[yellow]Gist creation failed: add gist_id manually to .prinbox.yml[/yellow]")

    _write_config(config_path, file_config)
    console.print(f"[green]Wrote {config_path}[/green]")

    config.update(file_config)
    store = _build_store(config)
    try:
        saved = SettingsStore(store).save(ViewerSettings(organization=organization, usernames=usernames))
    finally:
        if store is not ctx.obj.get("store"):
            store.close()
    if not saved:
        raise click.ClickException("Could not save settings to the configured store.")

    console.print(f"Watching [bold]{', '.join(usernames)}[/bold] in [bold]{organization}[/bold]")
    console.print("\n[bold green]Setup complete![/bold green] Run [bold]prinbox inbox[/bold] to see what's new.")


def _create_gist(token: str | None) -> str | None:
    if not token:
        return None
    from prinbox_store.gist import create_gist

    try:
        return create_gist(token)
    except GithubException as e:
        logger.warning("Gist creation failed (%s): %s", e.status, e.data)
        return None


def _write_config(config_path: str, config: dict) -> None:
    """Write or update .prinbox.yml, preserving any existing keys."""
    path = Path(config_path)
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
