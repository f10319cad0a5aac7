# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Actionable error panels for workflow map CLI failures."""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from pulse_scheduler.wmap.errors import (
    DeserializationError,
    InvalidNamespaceFormat,
    InvalidPayloadKind,
    SerializationError,
    UnsupportedChildType,
)

console = Console(stderr=True)

ERROR_ACTIONS = {
    DeserializationError: "Check the file is valid JSON/YAML using the "
    "collect / metric_namespaces / process / publish field names",
    InvalidNamespaceFormat: "Write namespaces as slash-delimited paths such as '/intel/mock/foo', "
    "or set PULSE_WMAP_STRICT_NAMESPACES=false",
    InvalidPayloadKind: "Pass the workflow map as text or bytes",
    SerializationError: "Convert to YAML, or keep config values to JSON types "
    "(strings, numbers, booleans, lists, mappings)",
    UnsupportedChildType: "Only process and publish nodes can be added as children",
}


def action_for(error: Exception) -> Optional[str]:
    for error_type, action in ERROR_ACTIONS.items():
        if isinstance(error, error_type):
            return action
    return None


def show_error(title: str, error: Exception, source: Optional[str] = None):
    """Display a formatted error with a suggested fix when one is known."""
    console.print()
    error_text = Text()
    error_text.append(f"✗ {title}\n\n", style="bold red")
    error_text.append(f"{error}\n", style="red")
    action = action_for(error)
    if action:
        error_text.append("\n→ Fix: ", style="bold yellow")
        error_text.append(f"{action}\n", style="yellow")
    console.print(Panel(error_text, border_style="red", expand=False))

    if source:
        console.print(f"[dim]Source: {source}[/dim]")
    console.print()


def show_success(message: str):
    console.print(f"[green]✓[/green] {message}", style="green")
