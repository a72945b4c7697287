"""
Command-line interface for ventwire.

Provides commands for decoding frames, ingesting submissions, and managing
stored device data and device configuration.
"""

import json
import logging
import sys

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Any

import click

from sqlalchemy import func, select

from ventwire.config import (
    get_config_path,
    get_database_path,
    get_ingest_settings,
    load_config,
    set_config_value,
)
from ventwire.constants import DATA_SOURCE_VALUES, DEFAULT_HISTORY_LIMIT, DeviceType
from ventwire.database import models
from ventwire.database.session import init_database, session_scope
from ventwire.ingest import IngestError, IngestService
from ventwire.ingest import repository
from ventwire.logging_config import setup_logging
from ventwire.parsers import (
    ParsedRecord,
    UnknownDeviceType,
    classify_device_type,
    parse_device_data,
)
from ventwire.parsers.register_all import register_all_parsers

logger = logging.getLogger(__name__)

try:
    __version__ = get_version("ventwire")
except PackageNotFoundError:
    __version__ = "dev"

DEVICE_TYPE_CHOICE = click.Choice([t.value for t in DeviceType])


def _read_frame(frame: str) -> str:
    """Frame argument, or stdin when given as '-'."""
    if frame == "-":
        return sys.stdin.read().strip()
    return frame


def _open_db(db: str | None) -> None:
    init_database(str(Path(db)) if db else None)


def _format_token(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _display_record(record: ParsedRecord) -> None:
    click.echo(f"\nDevice type: {record.device_type.value}")

    if not record.sections:
        click.echo("No sections found in frame.")
        return

    click.echo("\nSections:")
    for letter, tokens in record.sections.items():
        click.echo(f"  {letter}: {', '.join(_format_token(t) for t in tokens)}")

    document = record.to_document()
    for group, values in document.items():
        if group == "sections":
            continue
        click.echo(f"\n{group}:")
        if isinstance(values, dict):
            for name, value in values.items():
                click.echo(f"  {name:<14} {_format_token(value)}")
        else:
            click.echo(f"  {', '.join(_format_token(v) for v in values)}")
    click.echo()


@click.group()
@click.version_option(__version__, prog_name="ventwire")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """ventwire: ventilator telemetry decoding and ingestion"""
    setup_logging(verbose=verbose, console_format="%(levelname)s: %(message)s")
    register_all_parsers()


@cli.command()
@click.argument("frame")
@click.option(
    "--type",
    "device_type",
    type=DEVICE_TYPE_CHOICE,
    help="Device type (auto-detected when omitted)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the stored JSON document")
def parse(frame: str, device_type: str | None, as_json: bool) -> None:
    """Decode a telemetry FRAME ('-' reads it from stdin)."""
    raw = _read_frame(frame)

    if device_type is None:
        device_type = classify_device_type(raw).value
        logger.info(f"Auto-detected device type: {device_type}")

    try:
        record = parse_device_data(raw, device_type)
    except UnknownDeviceType as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps(record.to_document(), indent=2))
    else:
        _display_record(record)


@cli.command()
@click.argument("frame")
def classify(frame: str) -> None:
    """Print the detected device type of a FRAME ('-' reads stdin)."""
    click.echo(classify_device_type(_read_frame(frame)).value)


@cli.command()
@click.argument("payload_file", type=click.File("r"))
@click.option("--iot", is_flag=True, help="Treat the payload as an IoT Core message")
@click.option("--db", type=click.Path(), help="Database path")
def ingest(payload_file: Any, iot: bool, db: str | None) -> None:
    """Ingest a JSON submission from PAYLOAD_FILE ('-' reads stdin)."""
    try:
        body = json.load(payload_file)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Payload is not valid JSON: {e}") from e

    if not isinstance(body, dict):
        raise click.ClickException("Payload must be a JSON object")

    _open_db(db)
    service = IngestService()

    try:
        result = service.ingest_iot(body) if iot else service.ingest_direct(body)
    except (IngestError, UnknownDeviceType) as e:
        raise click.ClickException(str(e)) from e

    click.echo(
        f"✓ Stored record {result.record_id} for {result.device_id} "
        f"({result.device_type.value}, {result.data_source.value})"
    )
    if result.config_update.available:
        click.echo("  Pending configuration available for this device")


@cli.command()
@click.argument("device_id")
@click.option(
    "--limit", type=int, default=DEFAULT_HISTORY_LIMIT, help="Maximum records to show"
)
@click.option("--offset", type=int, default=0, help="Records to skip")
@click.option(
    "--source",
    type=click.Choice(sorted(DATA_SOURCE_VALUES)),
    help="Only records from this data source",
)
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.option("--db", type=click.Path(), help="Database path")
def history(
    device_id: str,
    limit: int,
    offset: int,
    source: str | None,
    as_json: bool,
    db: str | None,
) -> None:
    """Show stored frames for DEVICE_ID, newest first."""
    _open_db(db)
    page = repository.get_device_history(
        device_id, limit=limit, offset=offset, data_source=source
    )

    if as_json:
        click.echo(json.dumps(page, indent=2))
        return

    records = page["records"]
    if not records:
        click.echo(f"No data found for device {device_id}")
        return

    pagination = page["pagination"]
    click.echo(
        f"\nDevice {device_id}: showing {len(records)} of {pagination['total']} record(s)\n"
    )
    for record in records:
        metadata = record["parsed_data"].get("metadata") or {}
        click.echo(
            f"  #{record['id']:<6} {record['timestamp']}  {record['device_type']:<5}  "
            f"{record['data_source']:<8}  status={_format_token(record['device_status'])}  "
            f"device clock {_format_token(metadata.get('date'))} "
            f"{_format_token(metadata.get('time'))}"
        )
    if pagination["has_more"]:
        click.echo(f"\n  More records available (use --offset {offset + limit})")
    click.echo()


# ============================================================================
# Device configuration
# ============================================================================


@cli.group("device-config")
def device_config() -> None:
    """Pending configuration for devices."""
    pass


@device_config.command("show")
@click.argument("device_id")
@click.option("--db", type=click.Path(), help="Database path")
def device_config_show(device_id: str, db: str | None) -> None:
    """Show configuration for DEVICE_ID."""
    _open_db(db)
    try:
        config = repository.get_device_config(device_id)
    except IngestError as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(config, indent=2))


@device_config.command("set")
@click.argument("device_id")
@click.argument("config_json")
@click.option("--type", "device_type", type=DEVICE_TYPE_CHOICE, help="Device type")
@click.option("--db", type=click.Path(), help="Database path")
def device_config_set(
    device_id: str, config_json: str, device_type: str | None, db: str | None
) -> None:
    """Queue CONFIG_JSON for delivery to DEVICE_ID."""
    try:
        config_values = json.loads(config_json)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Configuration is not valid JSON: {e}") from e

    _open_db(db)
    try:
        config = repository.set_device_config(device_id, config_values, device_type)
    except IngestError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"✓ Configuration queued for {device_id} ({config['device_type']})")


@device_config.command("delivered")
@click.argument("device_id")
@click.option("--db", type=click.Path(), help="Database path")
def device_config_delivered(device_id: str, db: str | None) -> None:
    """Mark DEVICE_ID's configuration as delivered."""
    _open_db(db)
    try:
        repository.mark_config_delivered(device_id)
    except IngestError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"✓ Configuration marked as delivered for {device_id}")


# ============================================================================
# Database and settings
# ============================================================================


@cli.group()
def db() -> None:
    """Database management commands."""
    pass


@db.command()
@click.option("--db", "db_path", type=click.Path(), help="Database path")
def init(db_path: str | None) -> None:
    """Initialize database (creates tables if needed)."""
    path = str(Path(db_path)) if db_path else get_database_path()
    init_database(path)
    click.echo(f"✓ Database initialized at {path}")


@db.command()
@click.option("--db", "db_path", type=click.Path(), help="Database path")
def stats(db_path: str | None) -> None:
    """Show database statistics."""
    _open_db(db_path)

    with session_scope() as session:
        record_count = session.scalar(select(func.count(models.DeviceData.id))) or 0
        device_count = (
            session.scalar(select(func.count(func.distinct(models.DeviceData.device_id))))
            or 0
        )
        pending_count = (
            session.scalar(
                select(func.count(models.DeviceConfig.id)).where(
                    models.DeviceConfig.pending_update.is_(True)
                )
            )
            or 0
        )
        by_type = session.execute(
            select(models.DeviceData.device_type, func.count(models.DeviceData.id))
            .group_by(models.DeviceData.device_type)
            .order_by(models.DeviceData.device_type)
        ).all()

    click.echo("\nDatabase Statistics")
    click.echo(f"{'=' * 50}")
    click.echo(f"Records: {record_count}")
    click.echo(f"Devices: {device_count}")
    for device_type, count in by_type:
        click.echo(f"  {device_type}: {count}")
    click.echo(f"Pending configurations: {pending_count}")
    click.echo(f"{'=' * 50}\n")


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("show")
def show_config_cmd() -> None:
    """Show all configuration settings."""
    config_path = get_config_path()
    if not config_path.exists():
        click.echo(f"No config file: {config_path}")
        return

    click.echo(f"Config file: {config_path}\n")
    config_data = load_config()
    if not config_data:
        click.echo("Configuration is empty.")
        return

    click.echo("Settings:")
    for section, values in config_data.items():
        click.echo(f"  [{section}]")
        if isinstance(values, dict):
            for key, value in values.items():
                click.echo(f"    {key} = {value!r}")


@config.command("set-retry")
@click.option("--attempts", type=click.IntRange(min=1), help="Save attempts per frame")
@click.option(
    "--backoff", type=click.FloatRange(min=0), help="Base retry delay in seconds"
)
def set_retry_cmd(attempts: int | None, backoff: float | None) -> None:
    """Set storage retry behavior for ingestion."""
    if attempts is None and backoff is None:
        raise click.UsageError("Pass --attempts and/or --backoff")

    if attempts is not None:
        set_config_value("ingest", "max_save_attempts", attempts)
    if backoff is not None:
        set_config_value("ingest", "retry_backoff_seconds", backoff)

    current_attempts, current_backoff = get_ingest_settings()
    click.echo(
        f"✓ Ingest retry: {current_attempts} attempt(s), {current_backoff:.1f}s backoff"
    )


@config.command("set-database")
@click.argument("path", type=click.Path())
def set_database_cmd(path: str) -> None:
    """Set the default database path."""
    set_config_value("database", "path", str(Path(path).expanduser()))
    click.echo(f"✓ Database path: {get_database_path()}")


@cli.command("logs")
def logs_path() -> None:
    """Show log file location."""
    from ventwire.logging_config import get_log_path

    log_path = get_log_path()
    click.echo(f"Log file: {log_path}")
    if log_path.exists():
        size_mb = log_path.stat().st_size / (1024 * 1024)
        click.echo(f"Size: {size_mb:.2f} MB")
    else:
        click.echo("(File does not exist yet)")


def main() -> None:
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
