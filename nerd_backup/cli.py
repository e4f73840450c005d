"""Command-line entry point for nerd-backup.

The ``run`` command is the long-running service: it makes sure the restic
repository is usable, then backs up the configured Docker volumes on a fixed
interval until it receives SIGINT or SIGTERM. The other commands run single
steps of that service by hand.
"""

import sys
import time
from datetime import datetime
from typing import Optional, Tuple

import click
from dotenv import find_dotenv, load_dotenv

from nerd_backup import __version__
from nerd_backup.backup import LastRunStore, Scheduler, ShutdownSignal, VolumeBackupCoordinator
from nerd_backup.config import BackupConfig, ConfigManager, format_interval
from nerd_backup.containers import DockerRuntime
from nerd_backup.restic import RepositoryLifecycleManager, ResticClient, SubprocessRunner
from nerd_backup.utils.errors import ErrorHandler
from nerd_backup.utils.logging import setup_logging


class Service:
    """Wires the collaborators of a backup service together."""

    def __init__(self, config: BackupConfig):
        self.config = config
        self.client = ResticClient(config.repository)
        self.runner = SubprocessRunner()
        self.runtime = DockerRuntime()
        self.lifecycle = RepositoryLifecycleManager(self.client, self.runner)
        self.coordinator = VolumeBackupCoordinator(self.client, self.runner, self.runtime)
        self.store = LastRunStore.in_directory(config.state_dir)

    def scheduler(self, shutdown: Optional[ShutdownSignal] = None) -> Scheduler:
        return Scheduler(
            self.coordinator,
            self.config.volumes,
            self.config.interval,
            self.store,
            shutdown=shutdown,
        )


def _load_service(ctx: click.Context) -> Service:
    manager = ConfigManager(config_file=ctx.obj["config_file"])
    return Service(manager.load())


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--log-file", help="Log to file in addition to console")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    help="YAML configuration file (NERD_BACKUP_* variables take precedence)",
)
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    help="Load variables from this .env file (default: ./.env if present)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    log_file: Optional[str],
    config_file: Optional[str],
    env_file: Optional[str],
) -> None:
    """nerd-backup - scheduled restic backups of Docker volumes.

    Containers using a volume are stopped while it is backed up and started
    again afterwards, whether or not the backup succeeded.
    """
    # Host-provided variables win; the .env file only fills gaps.
    load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_file"] = config_file
    ctx.obj["error_handler"] = ErrorHandler(verbose=verbose)

    setup_logging(verbose=verbose, log_file=log_file)


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Run the backup service until SIGINT or SIGTERM."""
    handler: ErrorHandler = ctx.obj["error_handler"]
    try:
        service = _load_service(ctx)
        service.store.ensure_directory()
        service.lifecycle.ensure_ready()
    except Exception as e:
        handler.exit_with_error(e, context="Starting backup service")
        return

    shutdown = ShutdownSignal()
    shutdown.install()
    service.scheduler(shutdown).run()


@cli.command()
@click.argument("volumes", nargs=-1)
@click.pass_context
def backup(ctx: click.Context, volumes: Tuple[str, ...]) -> None:
    """Back up VOLUMES (default: all configured volumes) right now."""
    handler: ErrorHandler = ctx.obj["error_handler"]
    try:
        service = _load_service(ctx)
        service.lifecycle.ensure_ready()
    except Exception as e:
        handler.exit_with_error(e, context="Preparing repository")
        return

    # An ad-hoc subset of volumes does not count as a scheduled cycle.
    if volumes:
        try:
            service.coordinator.backup_all(volumes)
        except Exception as e:
            handler.exit_with_error(e, context="Backing up volumes")
            return
        click.echo(f"✓ Backed up {len(volumes)} volume(s)")
        return

    if not service.scheduler().run_cycle():
        click.echo("✗ Backup failed, see log for details", err=True)
        sys.exit(1)
    click.echo(f"✓ Backed up {len(service.config.volumes)} volume(s)")


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check the repository, initializing or unlocking it if needed."""
    handler: ErrorHandler = ctx.obj["error_handler"]
    try:
        service = _load_service(ctx)
        state = service.lifecycle.ensure_ready()
    except Exception as e:
        handler.exit_with_error(e, context="Checking repository")
        return

    click.echo(f"✓ Repository {service.client.repository} is {state.value}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the schedule and the last successful backup."""
    handler: ErrorHandler = ctx.obj["error_handler"]
    try:
        service = _load_service(ctx)
    except Exception as e:
        handler.exit_with_error(e, context="Loading configuration")
        return

    scheduler = service.scheduler()
    click.echo(f"Volumes:   {', '.join(service.config.volumes)}")
    click.echo(f"Interval:  {format_interval(scheduler.interval_seconds)}")

    last_run = service.store.read()
    if last_run is None:
        click.echo("Last run:  never")
        click.echo("Next run:  immediately")
        return

    click.echo(f"Last run:  {_format_timestamp(last_run)}")
    next_due = scheduler.next_due()
    if next_due is not None and next_due <= time.time():
        click.echo("Next run:  overdue")
    else:
        click.echo(f"Next run:  {_format_timestamp(next_due)}")


def _format_timestamp(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).isoformat(sep=" ", timespec="seconds")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
