#!/usr/bin/env python3
"""
page - Secret store CLI

Every secret is one age-encrypted file below the store root, protected
by a single passphrase-protected master key.
"""
import logging
import os
import sys
from datetime import datetime
from typing import Optional

import click
from tabulate import tabulate

from . import __version__
from .clipboard import (
    ClipboardError, clear_in_background_process, copy_to_clipboard, sink_from_spec,
)
from .config import PageConfig, parse_timeout
from .crypto import AgeTool
from .errors import AlreadyExists, ConfigError, MissingArgument, NotFound, UsageFailed
from .generator import generate_password, read_manual_secret
from .keys import MASTER_KEY_NAME
from .names import validate
from .storage import SecretStore, ensure_store
from .terminal import confirm, install_restore_handlers

logger = logging.getLogger("page.cli")


def _help_and_exit(command, error, info_name, parent):
    if isinstance(error, (click.BadParameter, click.BadOptionUsage)):
        # a recognised option with a bad or missing value is an error, not a help request
        raise UsageFailed(error.format_message()) from error
    ctx = error.ctx or click.Context(command, info_name=info_name, parent=parent)
    click.echo(ctx.get_help())
    raise click.exceptions.Exit(0)


class PageCommand(click.Command):
    """Unknown flags or extra arguments show the help text, exit 0"""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            _help_and_exit(self, e, info_name, parent)


class PageGroup(click.Group):
    command_class = PageCommand

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            _help_and_exit(self, e, info_name, parent)

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            _help_and_exit(self, e, ctx.info_name, ctx.parent)


def get_store(obj: dict, require_key: bool = True) -> SecretStore:
    """Check the preconditions shared by every command and open the store.

    The file creation mask and terminal restore handlers are installed
    here, once per process, before anything is written or prompted.
    """
    if "store" in obj:
        store = obj["store"]
    else:
        config = obj.get("config") or PageConfig.from_env(store_dir=obj.get("store_dir"))
        os.umask(config.umask)
        install_restore_handlers()

        primitive = obj.get("primitive") or AgeTool()
        primitive.check()
        ensure_store(config.store_dir)

        store = SecretStore(config.store_dir, primitive)
        logger.debug("Opened store %s", config.store_dir)
        obj["config"] = config
        obj["store"] = store

    if require_key:
        store.keys.require()
    return store


def require_name(name: Optional[str]) -> str:
    if not name:
        raise MissingArgument()
    validate(name)
    return name


def existing(store: SecretStore, name: Optional[str]) -> str:
    name = require_name(name)
    if name == MASTER_KEY_NAME or not store.exists(name):
        raise NotFound(name)
    return name


@click.group(cls=PageGroup, invoke_without_command=True)
@click.option('--store', '-s', metavar='DIR', help='Store directory (default: $PAGE_STORE_DIR)')
@click.option('--verbose', '-v', is_flag=True, help='Log what page is doing to stderr')
@click.version_option(version=__version__, prog_name="page")
@click.pass_context
def cli(ctx, store, verbose):
    """page - age-encrypted secret store

    Secrets are named like paths: "mail/work" lives in the "mail" category.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    obj = ctx.ensure_object(dict)
    obj.setdefault("store_dir", store)


@cli.command('gen-key')
@click.pass_obj
def gen_key(obj):
    """Create the master key (asks for a passphrase)"""
    path = get_store(obj, require_key=False).keys.generate()
    click.echo(f"Master key created: {path}")


cli.add_command(gen_key, 'generate-master-key')


@cli.command()
@click.argument('name', required=False)
@click.option('--manual', '-m', is_flag=True, help='Type the secret instead of generating it')
@click.option('--length', '-l', type=int, help='Generated password length')
@click.option('--pattern', '-p', help='Generated password characters, tr(1) style')
@click.pass_obj
def add(obj, name, manual, length, pattern):
    """Add a new secret

    Example:
        page add mail/work
        page add -m bank/pin
    """
    store = get_store(obj)
    config = obj["config"]
    name = require_name(name)
    if store.exists(name):
        raise AlreadyExists(name)

    if manual:
        secret = read_manual_secret()
    else:
        secret = generate_password(
            pattern if pattern is not None else config.password_pattern,
            length if length is not None else config.password_length,
        )

    store.add(name, secret.encode())
    click.echo(f"Added {name}")


@cli.command('list')
@click.option('--long', '-l', 'long_format', is_flag=True, help='Show category and modification time')
@click.pass_obj
def list_secrets(obj, long_format):
    """List stored secrets"""
    store = get_store(obj)
    names = sorted(store)
    if not long_format:
        for name in names:
            click.echo(name)
        return
    if not names:
        return

    rows = []
    for name in names:
        info = store.info(name)
        modified = datetime.fromtimestamp(info["modified"]).strftime("%Y-%m-%d %H:%M")
        rows.append([name, info["category"] or "-", modified])
    click.echo(tabulate(rows, headers=['Name', 'Category', 'Modified'], tablefmt='simple'))


@cli.command()
@click.argument('name', required=False)
@click.pass_obj
def show(obj, name):
    """Print a secret"""
    store = get_store(obj)
    name = existing(store, name)
    if sys.stdout.isatty() and not confirm(f"Show {name} on screen? [y/N] "):
        return
    click.echo(store.read(name))


@cli.command()
@click.argument('name', required=False)
@click.option('--timeout', '-t', metavar='SECONDS',
              help="Seconds before the clipboard is cleared, or 'off'")
@click.pass_obj
def copy(obj, name, timeout):
    """Copy a secret to the clipboard without displaying it"""
    store = get_store(obj)
    config = obj["config"]
    name = existing(store, name)
    if timeout is None:
        timeout = config.clipboard_timeout
    else:
        try:
            timeout = parse_timeout(timeout)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    secret = store.read(name)
    sink = obj.get("clipboard") or sink_from_spec(config.clipboard)
    schedule = obj.get("schedule") or clear_in_background_process(config.clipboard)
    try:
        text = secret.decode()
    except UnicodeDecodeError as e:
        raise ClipboardError(
            f"'{name}' is not UTF-8 text and cannot go on the clipboard, use 'page show'"
        ) from e
    copy_to_clipboard(text, sink, timeout, schedule)

    click.echo(f"Copied {name} to clipboard")
    if timeout is not None:
        click.echo(f"Clipboard will be cleared in {timeout} seconds")


@cli.command()
@click.argument('name', required=False)
@click.pass_obj
def delete(obj, name):
    """Delete a secret (asks first)"""
    store = get_store(obj)
    name = require_name(name)
    if store.delete(name, confirm=confirm):
        click.echo(f"Deleted {name}")


def main():
    cli(prog_name="page")


if __name__ == '__main__':
    main()
