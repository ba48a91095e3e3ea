"""CLI entry point for prinbox.

Commands:
  init  pick the organization and authors to watch, and a store backend
  inbox  fetch open pull requests and show which carry unseen activity
  read  mark one pull request read
  toggle  flip one pull request between read and unread
  read-all  mark every pull request in the current view read
  undo  restore read state from before the last read/unread change
"""

from __future__ import annotations

import importlib.metadata

import click
from rich.console import Console

from prinbox_cli.commands.inbox import inbox_cmd
from prinbox_cli.commands.init import init_cmd
from prinbox_cli.commands.read import read_all_cmd, read_cmd, toggle_cmd, undo_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured blob store from .prinbox.yml settings.

    Store selection hierarchy:
      store: file   → FileStore   (store_path or ~/.prinbox)
      store: sqlite → SQLiteStore (store_path or .prinbox.db)
      store: gist   → GistStore   (requires gist_id and github_token)
      store: memory → MemoryStore (nothing survives the process)

    This factory lives in cli.py so neither prinbox_core nor prinbox_store
    know about the CLI config format.
    """
    from prinbox_store.memory import MemoryStore

    store_type = config.get("store", "file")
    store_path = config.get("store_path")

    if store_type == "gist":
        from prinbox_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            console.print(
                "[yellow]GistStore requires gist_id and a GitHub token. "
                "Read state will not be saved this session.[/yellow]"
            )
            return MemoryStore()
        return GistStore(gist_id=gist_id, token=token)

    if store_type == "sqlite":
        from prinbox_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=store_path or ".prinbox.db")

    if store_type == "file":
        from prinbox_store.file import DEFAULT_STORE_DIR, FileStore

        return FileStore(directory=store_path or DEFAULT_STORE_DIR)

    return MemoryStore()


@click.group()
@click.version_option(
    version=importlib.metadata.version("prinbox"),
    prog_name="prinbox",
)
@click.option(
    "--config",
    "config_path",
    default=".prinbox.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRINBOX_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Track which of your team's pull requests have activity you haven't seen."""
    import logging

    from prinbox_cli.auth import resolve_github_token
    from prinbox_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.call_on_close(store.close)


main.add_command(init_cmd)
main.add_command(inbox_cmd)
main.add_command(read_cmd)
main.add_command(toggle_cmd)
main.add_command(read_all_cmd)
main.add_command(undo_cmd)
