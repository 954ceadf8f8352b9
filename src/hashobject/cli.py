"""Typer CLI entrypoint for hashobject."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from hashobject.errors import ConfigurationError, PayloadDecodeError
from hashobject.fields import FieldDescriptor
from hashobject.loaders import parse_file
from hashobject.mapped import HashObject

app = typer.Typer(help="Parse JSON/YAML payloads into declared object schemas.")
_CONSOLE = Console()
_ERR_CONSOLE = Console(stderr=True)
_LOGGING_CONFIGURED = False

_TargetOption = Annotated[
    str,
    typer.Option(
        "--type",
        "-t",
        help="Target HashObject subclass as 'package.module:ClassName'.",
    ),
]


def _configure_logging(*, verbose: bool = False) -> None:
    """Configure Rich-backed logging once for CLI commands."""
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
    )
    _LOGGING_CONFIGURED = True


def _resolve_target(reference: str) -> type[HashObject]:
    """Import the HashObject subclass named by ``module:Name``.

    Args:
        reference: Import reference.

    Returns:
        Resolved target class.

    Raises:
        BadParameter: If the reference is malformed or does not name a
            HashObject subclass.
    """
    module_name, _, attr_name = reference.partition(":")
    if not module_name or not attr_name:
        raise typer.BadParameter(f"expected 'module:Name', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"cannot import {module_name!r}: {exc}") from exc
    target = getattr(module, attr_name, None)
    if not (isinstance(target, type) and issubclass(target, HashObject)):
        raise typer.BadParameter(f"{reference!r} is not a HashObject subclass")
    return target


def _print_error(code: str, exc: Exception) -> None:
    _ERR_CONSOLE.print(
        f"[bold red]{code}[/bold red]: {escape(str(exc))}", highlight=False
    )


def _describe_coercion(descriptor: FieldDescriptor) -> str:
    if descriptor.coercion_type is not None:
        return f"type {descriptor.coercion_type.__name__}"
    if descriptor.coercion_builder is not None:
        name = getattr(descriptor.coercion_builder, "__name__", "builder")
        return f"builder {name}"
    return "-"


def _describe_default(descriptor: FieldDescriptor) -> str:
    if descriptor.required:
        return "-"
    default: Any = descriptor.default
    if callable(default):
        return f"<{getattr(default, '__name__', 'producer')}()>"
    return repr(default)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Parse JSON/YAML payloads into declared object schemas."""
    _configure_logging(verbose=verbose)


@app.command("parse")
def parse_command(
    payload: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            help="JSON or YAML payload file.",
        ),
    ],
    target: _TargetOption,
) -> None:
    """Parse PAYLOAD into the target type and print its fields.

    Args:
        payload: Payload file path.
        target: Import reference of the target type.

    Raises:
        Exit: With code 1 when the payload does not fit the schema.
    """
    target_type = _resolve_target(target)
    try:
        instance = parse_file(target_type, payload)
    except (ConfigurationError, PayloadDecodeError) as exc:
        _print_error(getattr(exc, "code", "payload_decode_error"), exc)
        raise typer.Exit(code=1) from exc

    stored = vars(instance)
    table = Table(
        title=target_type.__name__, show_header=True, header_style="bold cyan"
    )
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for descriptor in target_type.schema().field_descriptors():
        name = descriptor.field_name
        value = repr(stored.get(name))
        if not descriptor.readable:
            value = f"{value} (write-only)"
        table.add_row(name, value)
    _CONSOLE.print(table)


@app.command("describe")
def describe_command(target: _TargetOption) -> None:
    """Print the declared schema of the target type.

    Args:
        target: Import reference of the target type.
    """
    registry = _resolve_target(target).schema()
    target_type = registry.target_type
    mode = "strict" if registry.strict else "lenient"
    table = Table(
        title=f"{target_type.__name__} ({mode})",
        show_header=True,
        header_style="bold cyan",
    )
    for column in (
        "Field",
        "Source key",
        "Cardinality",
        "Required",
        "Default",
        "Coercion",
        "Readable",
    ):
        table.add_column(column)
    for descriptor in registry.field_descriptors():
        table.add_row(
            descriptor.field_name,
            descriptor.source_key,
            descriptor.cardinality.value,
            "yes" if descriptor.required else "no",
            _describe_default(descriptor),
            _describe_coercion(descriptor),
            "yes" if descriptor.readable else "no",
        )
    _CONSOLE.print(table)
