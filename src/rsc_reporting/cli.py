"""CLI interface for RSC reporting."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .aggregation import object_compliance, rollup_threat_hunt, summarize_anomalies
from .config import RscSettings, load_settings
from .errors import RscError
from .export import to_dataframe, write_records
from .logging_utils import setup_logging
from .resources import (
    RecordSet,
    get_anomalies,
    get_clusters,
    get_ec2_instances,
    get_ec2_volumes,
    get_events,
    get_objects,
    get_s3_bucket_tags,
    get_s3_buckets,
    get_sla_domains,
    get_snapshots,
    get_threat_hunt_result,
    get_threat_hunts,
)
from .session import ConnectOptions, RscSession, connect

app = typer.Typer(
    name="rsc-reporting",
    help="Report on Rubrik Security Cloud objects, snapshots, events and threats",
    no_args_is_help=True,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to YAML config file")
]
UrlOption = Annotated[
    str | None, typer.Option("--url", "-u", help="RSC URL (e.g., https://acme.my.rubrik.com)")
]
ServiceAccountOption = Annotated[
    Path | None,
    typer.Option("--service-account", "-s", help="Service account JSON downloaded from RSC"),
]
SecretsDirOption = Annotated[
    Path | None,
    typer.Option("--secrets-dir", help="Directory for the saved URL and credential"),
]
OutputOption = Annotated[
    Path | None,
    typer.Option("--output", "-o", help="Write records to a .csv or .json file"),
]
LimitOption = Annotated[
    int, typer.Option("--limit", "-n", help="Maximum rows to print (0 = all)")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")]


def get_settings(config_path: Path | None = None) -> RscSettings:
    """Load settings from file and environment."""
    try:
        return load_settings(config_path)
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(1) from None


def open_session(
    config_path: Path | None,
    url: str | None,
    service_account: Path | None,
    secrets_dir: Path | None,
    verbose: bool,
) -> RscSession:
    """Connect, or print the failure and exit 1."""
    setup_logging(verbose, console=console)
    settings = get_settings(config_path)
    options = ConnectOptions.from_settings(
        settings,
        url=url,
        service_account_file=service_account,
        secrets_dir=secrets_dir,
    )
    result = connect(options)
    if not result.connected or result.session is None:
        console.print(f"[red]{result.message}[/red]")
        raise typer.Exit(1)
    return result.session


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)


def print_rows(rows: list[dict[str, Any]], title: str, limit: int = 50) -> None:
    """Print rows as a rich table."""
    if not rows:
        console.print(f"[yellow]No {title.lower()} found[/yellow]")
        return

    table = Table(title=f"{title} ({len(rows):,})")
    columns = [c for c in rows[0] if c != "RSCInstance"]
    for column in columns:
        table.add_column(column, overflow="fold")
    shown = rows if limit <= 0 else rows[:limit]
    for row in shown:
        table.add_row(*(_cell(row.get(c)) for c in columns))
    console.print(table)
    if len(shown) < len(rows):
        console.print(f"[dim]Showing {len(shown)} of {len(rows)} rows; use --output for all[/dim]")


def emit(records: RecordSet[Any], title: str, output: Path | None, limit: int) -> None:
    """Print or export a record set; exit 1 if the fetch stopped on an error."""
    if output:
        try:
            path = write_records(records.records, output)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1) from None
        console.print(f"[green]Wrote {len(records):,} {title.lower()} to {path}[/green]")
    else:
        print_rows(records.rows(), title, limit)

    if records.errors:
        for error in records.errors:
            console.print(f"[red]Error: {error}[/red]")
        raise typer.Exit(1)


def _since(hours: float | None) -> datetime | None:
    if hours is None:
        return None
    return datetime.now(timezone.utc) - timedelta(hours=hours)


@app.command()
def version() -> None:
    """Show the version."""
    console.print(f"rsc-reporting {__version__}")


@app.command(name="connect")
def connect_command(
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Authenticate and save the URL and credential for later runs."""
    session = open_session(config_path, url, service_account, secrets_dir, verbose)
    with session:
        table = Table(title="Connection Status")
        table.add_column("Instance", style="cyan")
        table.add_column("URL")
        table.add_column("Status", style="green")
        table.add_row(session.instance, session.context.base_url, "Connected")
        console.print(table)


@app.command()
def objects(
    object_type: Annotated[
        list[str] | None,
        typer.Option("--type", "-t", help="Object type filter (repeatable, e.g. VmwareVirtualMachine)"),
    ] = None,
    name: Annotated[str | None, typer.Option("--name", help="Name search term")] = None,
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List protected objects."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        emit(get_objects(session, object_types=object_type, name=name), "Objects", output, limit)


@app.command()
def snapshots(
    object_id: Annotated[str, typer.Argument(help="Object ID (fid)")],
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List snapshots of one object, newest first."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        emit(get_snapshots(session, object_id), "Snapshots", output, limit)


@app.command()
def events(
    object_name: Annotated[
        str | None, typer.Option("--object", help="Only events for objects with this name")
    ] = None,
    hours: Annotated[
        float | None, typer.Option("--hours", help="Only events updated in the last N hours")
    ] = None,
    event_type: Annotated[
        list[str] | None, typer.Option("--type", "-t", help="Event type filter (repeatable)")
    ] = None,
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List event series."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        records = get_events(
            session, object_name=object_name, since=_since(hours), event_types=event_type
        )
        emit(records, "Events", output, limit)


@app.command()
def clusters(
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List Rubrik clusters."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        emit(get_clusters(session), "Clusters", output, limit)


@app.command(name="sla-domains")
def sla_domains(
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List SLA domains."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        emit(get_sla_domains(session), "SLA Domains", output, limit)


@app.command()
def anomalies(
    hours: Annotated[
        float | None, typer.Option("--hours", help="Only anomalies detected in the last N hours")
    ] = None,
    summary: Annotated[
        bool, typer.Option("--summary", help="One row per object instead of one per anomaly")
    ] = False,
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List anomaly detection results."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        records = get_anomalies(session, since=_since(hours))
        if not summary:
            emit(records, "Anomalies", output, limit)
            return

        df = summarize_anomalies(records.records)
        if output:
            path = write_records(df, output)
            console.print(f"[green]Wrote {len(df):,} objects to {path}[/green]")
        else:
            print_rows(df.to_dict(orient="records"), "Anomalous Objects", limit)
        if records.errors:
            for error in records.errors:
                console.print(f"[red]Error: {error}[/red]")
            raise typer.Exit(1)


@app.command(name="s3-buckets")
def s3_buckets(
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List AWS S3 buckets."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        emit(get_s3_buckets(session), "S3 Buckets", output, limit)


@app.command(name="s3-tags")
def s3_tags(
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List AWS S3 bucket tags, one row per tag."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        emit(get_s3_bucket_tags(session), "S3 Bucket Tags", output, limit)


@app.command(name="ec2-instances")
def ec2_instances(
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List AWS EC2 instances."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        emit(get_ec2_instances(session), "EC2 Instances", output, limit)


@app.command(name="ec2-volumes")
def ec2_volumes(
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List EBS volumes attached to EC2 instances, one row per volume."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        emit(get_ec2_volumes(session), "EC2 Volumes", output, limit)


@app.command(name="threat-hunts")
def threat_hunts(
    output: OutputOption = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List threat hunts."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        emit(get_threat_hunts(session), "Threat Hunts", output, limit)


@app.command(name="threat-hunt")
def threat_hunt(
    hunt_id: Annotated[str, typer.Argument(help="Threat hunt ID")],
    matches_out: Annotated[
        Path | None, typer.Option("--matches", help="Write per-match records to .csv/.json")
    ] = None,
    snapshots_out: Annotated[
        Path | None, typer.Option("--snapshots", help="Write per-snapshot summaries to .csv/.json")
    ] = None,
    objects_out: Annotated[
        Path | None, typer.Option("--objects", help="Write per-object summaries to .csv/.json")
    ] = None,
    limit: LimitOption = 50,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Roll up the results of one threat hunt."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        result, errors = get_threat_hunt_result(session, hunt_id)
        if result is None:
            for error in errors or [f"Threat hunt {hunt_id} not found"]:
                console.print(f"[red]Error: {error}[/red]")
            raise typer.Exit(1)

        rollup = rollup_threat_hunt(result, instance=session.instance)

        table = Table(title=f"Threat Hunt {rollup.summary.name or hunt_id}", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        for key, value in rollup.summary.to_row().items():
            if key != "RSCInstance":
                table.add_row(key, _cell(value))
        console.print(table)
        print_rows([o.to_row() for o in rollup.objects], "Objects", limit)

        for tier, path in (
            (rollup.matches, matches_out),
            (rollup.snapshots, snapshots_out),
            (rollup.objects, objects_out),
        ):
            if path:
                written = write_records(to_dataframe(tier), path)
                console.print(f"[green]Wrote {len(tier):,} rows to {written}[/green]")

        if errors:
            for error in errors:
                console.print(f"[red]Error: {error}[/red]")
            raise typer.Exit(1)


@app.command()
def compliance(
    object_id: Annotated[str, typer.Argument(help="Object ID (fid)")],
    days: Annotated[int, typer.Option("--days", "-d", help="Number of daily windows")] = 7,
    hour: Annotated[
        int, typer.Option("--hour", help="Backup window start hour (local time)", min=0, max=23)
    ] = 20,
    minute: Annotated[
        int, typer.Option("--minute", help="Backup window start minute", min=0, max=59)
    ] = 0,
    output: OutputOption = None,
    config_path: ConfigOption = None,
    url: UrlOption = None,
    service_account: ServiceAccountOption = None,
    secrets_dir: SecretsDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show whether each daily backup window of an object has a snapshot."""
    with open_session(config_path, url, service_account, secrets_dir, verbose) as session:
        windows, errors = object_compliance(session, object_id, days=days, hour=hour, minute=minute)
        if errors:
            for error in errors:
                console.print(f"[red]Error: {error}[/red]")
            raise typer.Exit(1)

        if output:
            path = write_records(windows, output)
            console.print(f"[green]Wrote {len(windows)} windows to {path}[/green]")
            return

        table = Table(title=f"Backup Compliance: {object_id}")
        table.add_column("Day", justify="right")
        table.add_column("From")
        table.add_column("To")
        table.add_column("Snapshots", justify="right")
        table.add_column("Backup", justify="center")
        for window in windows:
            table.add_row(
                str(window.day_index),
                _cell(window.range_end),
                _cell(window.range_start),
                str(window.snapshot_count),
                "[green]yes[/green]" if window.backup_found else "[red]no[/red]",
            )
        console.print(table)


def main() -> None:
    try:
        app()
    except RscError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
