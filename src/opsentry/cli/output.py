"""JSON output helpers for CLI commands.

Every command prints exactly one envelope to stdout:
``{"success": bool, "data": {...}, "error": str | None}``.
"""

import json
import sys
from typing import Any, Mapping, NoReturn, Optional

import click


def _echo(envelope: Mapping[str, Any]) -> None:
    click.echo(json.dumps(envelope, indent=2, default=str))


def emit_success(data: Optional[Mapping[str, Any]] = None) -> None:
    """Print a success envelope."""
    _echo({"success": True, "data": dict(data or {}), "error": None})


def emit_error(
    message: str,
    *,
    code: str,
    error_type: str,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> NoReturn:
    """Print an error envelope and exit with status 1."""
    data: dict = {"error_code": code, "error_type": error_type}
    if remediation is not None:
        data["remediation"] = remediation
    if details:
        data["details"] = dict(details)
    _echo({"success": False, "data": data, "error": message})
    sys.exit(1)
