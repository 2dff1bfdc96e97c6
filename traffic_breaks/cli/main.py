"""
Main CLI entry point for Traffic Breaks.

Runs one traffic check and control pass on demand, the same pass the
scheduler triggers.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from traffic_breaks import __version__
from traffic_breaks.core.config import ConfigManager
from traffic_breaks.core.exceptions import (
    ConfigurationError, ServiceError, TrafficBreaksError
)
from traffic_breaks.cli.report import ReportView
from traffic_breaks.services.client import SignedRequestClient
from traffic_breaks.services.operations import ScheduledControl


console = Console()

# Exit codes for different error types
EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_SERVICE_ERROR = 4
EXIT_USER_CANCELLED = 130


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@click.command()
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be started or stopped without making changes",
)
@click.option(
    "--status",
    is_flag=True,
    help="Show current traffic and instance status only",
)
@click.option(
    "--config-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON configuration file (defaults to environment variables)",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable debug logging",
)
@click.version_option(version=__version__)
def main(
    dry_run: bool = False,
    status: bool = False,
    config_file: Optional[Path] = None,
    verbose: bool = False,
) -> None:
    """
    🚦 Traffic Breaks - Egress Traffic Guard for Alibaba Cloud ECS

    Stops ECS instances whose region has used up its CDT traffic quota and
    starts them again once traffic is back under the threshold.
    """
    configure_logging(verbose)

    try:
        config_manager = ConfigManager(config_file)
        config = config_manager.load_config(os.environ)
        if dry_run:
            config = config.model_copy(update={'dry_run': True})

        view = ReportView(console)

        with SignedRequestClient.from_config(config) as client:
            control = ScheduledControl(config, client, config_manager.skipped_entries)

            if status:
                view.show_status(control.collect_status())
                return

            report = control.execute()

        view.show_report(report)
        if report.traffic_error is not None:
            raise report.traffic_error

        console.print("✅ [green]Executed successfully[/green]")

    except KeyboardInterrupt:
        console.print("\n⚠️  [yellow]Operation cancelled by user[/yellow]")
        sys.exit(EXIT_USER_CANCELLED)
    except ConfigurationError as e:
        console.print(f"❌ [red]Configuration error: {escape(str(e))}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)
    except ServiceError as e:
        console.print(f"❌ [red]Service error: {escape(str(e))}[/red]")
        sys.exit(EXIT_SERVICE_ERROR)
    except TrafficBreaksError as e:
        console.print(f"❌ [red]{escape(str(e))}[/red]")
        sys.exit(EXIT_GENERAL_ERROR)
    except Exception as e:
        console.print(f"💥 [red]Unexpected error: {escape(str(e))}[/red]")
        console.print("[dim]Please report this issue with the full error message.[/dim]")
        sys.exit(EXIT_GENERAL_ERROR)


if __name__ == "__main__":
    main()
