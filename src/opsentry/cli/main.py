"""opsentry command-line entry point.

Commands:
    status  Show resolved configuration and observability state
    probe   Issue instrumented GET requests and report their aggregates
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import click
import httpx

from opsentry.cli.output import emit_error, emit_success
from opsentry.config import OpsentryConfig
from opsentry.core.errors import ClassifiedError, error_details, format_for_user
from opsentry.core.observability import LoggingReporter, ObservabilityManager
from opsentry.core.resilience import RetryPolicy


PROBE_TRACE = "probe"


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="TOML config file (replaces the layered lookup).",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str]) -> None:
    """In-process instrumentation and resilience toolkit."""
    ctx.ensure_object(dict)
    try:
        config = OpsentryConfig.from_env(config_file)
    except ValueError as e:
        emit_error(
            f"Invalid configuration: {e}",
            code="CONFIG_ERROR",
            error_type="validation",
            remediation="Fix the offending value in the config file or environment",
        )
    config.setup_logging()
    ctx.obj["config"] = config


@cli.command("status")
@click.pass_context
def status_cmd(ctx: click.Context) -> None:
    """Show resolved configuration and observability state."""
    config: OpsentryConfig = ctx.obj["config"]
    manager = ObservabilityManager.from_config(config)
    emit_success({"observability": manager.status(), "config": config.to_dict()})


@cli.command("probe")
@click.argument("url")
@click.option("--count", type=click.IntRange(min=1), default=1, show_default=True, help="Requests to issue.")
@click.option("--attempts", type=click.IntRange(min=1), default=None, help="Attempts per request (default from config).")
@click.option("--base-delay", type=click.FloatRange(min=0), default=None, help="First backoff wait in seconds (default from config).")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=10.0, show_default=True, help="Per-request timeout in seconds.")
@click.pass_context
def probe_cmd(
    ctx: click.Context,
    url: str,
    count: int,
    attempts: Optional[int],
    base_delay: Optional[float],
    timeout: float,
) -> None:
    """Issue COUNT instrumented GET requests to URL.

    Network failures are retried with exponential backoff; HTTP errors are
    reported immediately with their classified code.
    """
    config: OpsentryConfig = ctx.obj["config"]
    defaults = config.retry_policy()
    policy = RetryPolicy(
        max_attempts=attempts or defaults.max_attempts,
        base_delay=defaults.base_delay if base_delay is None else base_delay,
        backoff_multiplier=defaults.backoff_multiplier,
        max_delay=defaults.max_delay,
    )
    manager = ObservabilityManager.from_config(config, reporter=LoggingReporter(level=logging.DEBUG))
    transport: Optional[httpx.AsyncBaseTransport] = ctx.obj.get("transport")

    try:
        statuses = asyncio.run(_run_probes(manager, url, count, policy, timeout, transport))
    except ClassifiedError as e:
        details: Dict[str, Any] = {
            "url": url,
            "attempts": e.attempts,
            "aggregates": _probe_aggregates(manager),
        }
        if config.debug:
            details["debug"] = error_details(e, platform=config.platform, include_traceback=True)
        emit_error(
            format_for_user(e),
            code=e.code,
            error_type=e.kind.value,
            details=details,
        )

    emit_success(
        {
            "url": url,
            "count": count,
            "status_codes": statuses,
            "aggregates": _probe_aggregates(manager),
        }
    )


async def _run_probes(
    manager: ObservabilityManager,
    url: str,
    count: int,
    policy: RetryPolicy,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport],
) -> List[int]:
    statuses: List[int] = []
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:

        async def fetch() -> int:
            response = await client.get(url)
            response.raise_for_status()
            return response.status_code

        for _ in range(count):
            statuses.append(await manager.instrumentation.measure(PROBE_TRACE, fetch, policy))
    return statuses


def _probe_aggregates(manager: ObservabilityManager) -> Dict[str, Any]:
    return {
        "duration_ms": manager.store.aggregate(f"{PROBE_TRACE}_duration_ms").to_dict(),
        "success": manager.store.aggregate(f"{PROBE_TRACE}_success").to_dict(),
    }


if __name__ == "__main__":
    cli()
