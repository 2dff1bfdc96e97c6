"""Console rendering of run results and status for Traffic Breaks."""

from typing import Any, Dict

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from traffic_breaks.services.models import (
    ACTION_NONE,
    ACTION_START,
    InstanceDescription,
    RunReport,
)


class ReportView:
    """Renders run reports and status snapshots to a Rich console."""

    def __init__(self, console: Console):
        """Initialize the view.

        Args:
            console: Rich console for output
        """
        self.console = console

    def show_header(self, title: str) -> None:
        self.console.print(f"🚦 [bold]Traffic Breaks - {title}[/bold]")
        self.console.print("━" * 50)

    def show_traffic(self, traffic_by_region: Dict[str, float]) -> None:
        if not traffic_by_region:
            self.console.print("[dim]No regional traffic reported by CDT.[/dim]")
            return

        table = Table(title="Internet traffic this billing cycle")
        table.add_column("Region")
        table.add_column("Traffic (GB)", justify="right")
        for region, traffic_gb in sorted(traffic_by_region.items()):
            table.add_row(region, f"{traffic_gb:.2f}")
        self.console.print(table)

    def show_report(self, report: RunReport) -> None:
        """Print the traffic table and one row per evaluated instance."""
        self.show_header("Dry Run" if report.dry_run else "Run")

        if report.traffic_error is not None:
            self.console.print(f"❌ [red]Could not read traffic: {escape(report.traffic_error.message)}[/red]")
            return

        self.show_traffic(report.traffic_by_region)

        table = Table(title="Instances")
        table.add_column("Instance")
        table.add_column("Region")
        table.add_column("Threshold (GB)", justify="right")
        table.add_column("Status")
        table.add_column("Desired")
        table.add_column("Action")
        for result in report.results:
            if not result.success:
                action = "[red]failed[/red]"
            elif result.action == ACTION_NONE:
                action = "[dim]none[/dim]"
            elif result.action == ACTION_START:
                action = "[green]start[/green]"
            else:
                action = "[yellow]stop[/yellow]"
            table.add_row(
                result.instance.instance_id,
                result.instance.region,
                f"{result.instance.threshold_gb:g}",
                result.current_state.value if result.current_state else "?",
                result.desired_state.value,
                action,
            )
        self.console.print(table)

        for result in report.results:
            if not result.success:
                self.console.print(f"❌ [red]{escape(result.message)}[/red]")
        for skipped in report.skipped_configs:
            self.console.print(f"⚠️  [yellow]Skipped invalid instance config {escape(skipped)}[/yellow]")

    def show_status(self, status: Dict[str, Any]) -> None:
        """Print traffic and the current status of each configured instance."""
        self.show_header("Status")
        self.show_traffic(status['traffic_by_region'])
        self.console.print(f"Account total: {status['total_traffic_gb']:.2f} GB")

        table = Table(title="Instances")
        table.add_column("Instance")
        table.add_column("Region")
        table.add_column("Threshold (GB)", justify="right")
        table.add_column("Status")
        for instance, description in status['instances']:
            if isinstance(description, InstanceDescription):
                state = description.raw_status
            else:
                state = f"[red]{escape(description.message)}[/red]"
            table.add_row(instance.instance_id, instance.region, f"{instance.threshold_gb:g}", state)
        self.console.print(table)
