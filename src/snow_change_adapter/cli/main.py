"""
Primary Typer application wiring for the ServiceNow change adapter CLI.

The commands give operators a quick way to inspect configured instances, run
health probes and exercise the GET/POST change-request operations against a
live instance before handing the adapter to the orchestration host.
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import typer

from ..adapters import ServiceNowAdapter
from ..adapters.api import ResponseEnvelope
from ..config import ConfigurationError
from ..core import EventHandler, ExecutionContext, ExecutionOptions, InstanceRegistry, RegistryLoadError, configure_logging
from ..services import probe_until_online
from .adapters import resolve_adapter

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "ServiceNow change-request adapter CLI.\n\n"
        "Command groups:\n"
        "- instances: list, describe, and audit configured ServiceNow instances.\n"
        "- records: read and create change requests.\n"
        "- health / smoke: connectivity probe and end-to-end GET/POST check."
    ),
)
instances_app = typer.Typer(help="Inspect configured ServiceNow instances and audit their connectivity.")
app.add_typer(instances_app, name="instances")
records_app = typer.Typer(help="Read and create change requests through the adapter.")
app.add_typer(records_app, name="records")

_BODY_PREVIEW = 500


def _load_registry(instances_file: Optional[Path]) -> InstanceRegistry:
    if instances_file:
        return InstanceRegistry.from_yaml(instances_file)
    instances_pkg = "snow_change_adapter.resources.instances"
    with resources.as_file(resources.files(instances_pkg) / "default.yaml") as resolved:
        return InstanceRegistry.from_yaml(resolved)


def _render_error(error: object) -> str:
    if isinstance(error, ResponseEnvelope):
        body = error.body or ""
        if len(body) > _BODY_PREVIEW:
            body = body[:_BODY_PREVIEW] + "..."
        return f"HTTP {error.status_code}: {body}" if body else f"HTTP {error.status_code}"
    if isinstance(error, BaseException):
        return f"{error.__class__.__name__}: {error}" if str(error) else error.__class__.__name__
    return str(error)


@app.callback(invoke_without_command=False)
def main(
    ctx: typer.Context,
    instances_file: Optional[Path] = typer.Option(
        None,
        "--instances",
        "-i",
        help="Override the ServiceNow instance catalogue YAML file.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="Override the transport deadline in seconds."),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Observability tag attached to log lines. Can be repeated."),
) -> None:
    """
    Configure global execution context.

    The callback stores the instance registry and execution context in Typer's
    state so child commands can retrieve them via :class:`typer.Context`.
    """

    if log_level:
        configure_logging(log_level, force=True)

    try:
        registry = _load_registry(instances_file)
    except RegistryLoadError as exc:
        typer.echo(f"Failed to load instance catalogue: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    options = ExecutionOptions(observability_tags=tuple(tag or ()), timeout_override=timeout)
    context = ExecutionContext.build_default(options=options)
    state = ctx.ensure_object(dict)
    state["registry"] = registry
    state["context"] = context


def _require_registry(ctx: typer.Context) -> InstanceRegistry:
    state = ctx.ensure_object(dict)
    registry = state.get("registry")
    if not isinstance(registry, InstanceRegistry):
        raise typer.Exit(code=2)
    return registry


def _require_context(ctx: typer.Context) -> ExecutionContext:
    state = ctx.ensure_object(dict)
    context = state.get("context")
    if not isinstance(context, ExecutionContext):
        raise typer.Exit(code=2)
    return context


def _require_adapter(ctx: typer.Context, instance_id: str) -> ServiceNowAdapter:
    registry = _require_registry(ctx)
    context = _require_context(ctx)
    try:
        return resolve_adapter(instance_id, registry, context)
    except KeyError:
        typer.echo(f"ServiceNow instance '{instance_id}' is not registered.", err=True)
        raise typer.Exit(code=1) from None
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _echo_event(event: str) -> EventHandler:
    def _handler(payload: Mapping[str, object]) -> None:
        typer.echo(f"Event {event}: {json.dumps(dict(payload), ensure_ascii=False)}")

    return _handler


@instances_app.command("list")
def instances_list(
    ctx: typer.Context,
    tag: Optional[str] = typer.Option(None, "--tag", help="Only show instances carrying this tag."),
) -> None:
    """List catalogued ServiceNow instances."""

    registry = _require_registry(ctx)
    entries = registry.list(tag=tag)
    if not entries:
        typer.echo("No ServiceNow instances match the requested filters.")
        raise typer.Exit(code=0)

    header = f"{'ID':<20} {'Table':<16} URL"
    typer.echo(header)
    typer.echo("-" * len(header))
    for entry in entries:
        typer.echo(f"{entry.instance_id:<20} {entry.table:<16} {entry.url}")


@instances_app.command("describe")
def instances_describe(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., help="Identifier of the ServiceNow instance."),
    output_json: bool = typer.Option(False, "--json", help="Emit descriptor in JSON format."),
) -> None:
    """Show the catalogue entry for an instance."""

    registry = _require_registry(ctx)
    descriptor = registry.get(instance_id)
    if not descriptor:
        typer.echo(f"ServiceNow instance '{instance_id}' is not registered.", err=True)
        raise typer.Exit(code=1)

    if output_json:
        typer.echo(descriptor.to_json())
        return

    typer.echo(f"ID: {descriptor.instance_id}")
    typer.echo(f"URL: {descriptor.url}")
    typer.echo(f"Table: {descriptor.table}")
    typer.echo(f"Credentials: [{descriptor.credentials}]" if descriptor.credentials else "Credentials: environment")
    typer.echo(f"Timeout: {descriptor.timeout if descriptor.timeout is not None else 'none'}")
    if descriptor.tags:
        typer.echo(f"Tags: {', '.join(descriptor.tags)}")
    if descriptor.description:
        typer.echo(f"Description: {descriptor.description}")


@instances_app.command("audit")
def instances_audit(
    ctx: typer.Context,
    output_json: bool = typer.Option(False, "--json", help="Emit the audit report in JSON format."),
    fail_on_error: bool = typer.Option(True, "--fail-on-error/--no-fail-on-error", help="Control whether failures set a non-zero exit code."),
) -> None:
    """Probe every catalogued instance once and summarise connectivity."""

    registry = _require_registry(ctx)
    context = _require_context(ctx)
    descriptors = registry.list()
    if not descriptors:
        typer.echo("No ServiceNow instances available for audit.")
        raise typer.Exit(code=0)

    records: List[Dict[str, Any]] = []
    failures = 0
    for descriptor in descriptors:
        record: Dict[str, Any] = {"id": descriptor.instance_id, "url": descriptor.url, "success": False, "state": None, "message": ""}
        try:
            adapter = resolve_adapter(descriptor.instance_id, registry, context)
        except ConfigurationError as exc:
            record["message"] = f"Configuration error: {exc}"
        else:
            verification = adapter.verify()
            record["success"] = verification.success
            record["message"] = verification.message
            record["state"] = adapter.state.value if adapter.state else None
        if not record["success"]:
            failures += 1
        records.append(record)

    if output_json:
        typer.echo(json.dumps({"results": records}, ensure_ascii=False, indent=2))
    else:
        header = f"{'ID':<20} {'State':<8} Message"
        typer.echo(header)
        typer.echo("-" * len(header))
        for record in records:
            message = str(record["message"]).replace("\n", " ").strip()
            typer.echo(f"{record['id']:<20} {record['state'] or '-':<8} {message}")
        passed = len(records) - failures
        typer.echo(f"Audit complete: {len(records)} instance(s), {passed} online, {failures} offline.")

    if failures and fail_on_error:
        raise typer.Exit(code=1)


@app.command("health")
def health(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., help="Identifier of the ServiceNow instance."),
    attempts: int = typer.Option(1, "--attempts", "-a", min=1, max=20, help="Probe up to N times until the instance is ONLINE."),
    wait: float = typer.Option(1.0, "--wait", min=0.0, help="Initial backoff between probes in seconds."),
) -> None:
    """Run a health probe and report ONLINE or OFFLINE."""

    adapter = _require_adapter(ctx, instance_id)
    for event in ("ONLINE", "OFFLINE"):
        adapter.on(event, _echo_event(event))

    logger = _require_context(ctx).get_logger(f"{__name__}.health", extra={"adapter_id": instance_id})
    report = probe_until_online(adapter, attempts=attempts, wait_min=wait, logger=logger)
    typer.echo(report.result.message)
    if report.result.details:
        typer.echo(f"Details: {json.dumps(dict(report.result.details), ensure_ascii=False)}")
    if attempts > 1:
        typer.echo(f"Probes: {report.attempts}")
    if not report.result.success:
        raise typer.Exit(code=1)


@records_app.command("get")
def records_get(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., help="Identifier of the ServiceNow instance."),
) -> None:
    """Read change requests and print them as JSON."""

    adapter = _require_adapter(ctx, instance_id)
    records, error = adapter.get_record()
    if error is not None:
        typer.echo(f"Error returned from GET request: {_render_error(error)}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps([record.to_dict() for record in records], ensure_ascii=False, indent=2))


@records_app.command("post")
def records_post(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., help="Identifier of the ServiceNow instance."),
) -> None:
    """Create a change request and print it as JSON."""

    adapter = _require_adapter(ctx, instance_id)
    record, error = adapter.post_record()
    if error is not None:
        typer.echo(f"Error returned from POST request: {_render_error(error)}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))


@app.command("smoke")
def smoke(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., help="Identifier of the ServiceNow instance."),
) -> None:
    """Run GET then POST against an instance and print both results."""

    adapter = _require_adapter(ctx, instance_id)
    failures = 0

    records, error = adapter.get_record()
    if error is not None:
        failures += 1
        typer.echo(f"Error returned from GET request: {_render_error(error)}")
    else:
        typer.echo("Response returned from GET request:")
        typer.echo(json.dumps([record.to_dict() for record in records], ensure_ascii=False, indent=2))

    record, error = adapter.post_record()
    if error is not None:
        failures += 1
        typer.echo(f"Error returned from POST request: {_render_error(error)}")
    else:
        typer.echo("Response returned from POST request:")
        typer.echo(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))

    if failures:
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
