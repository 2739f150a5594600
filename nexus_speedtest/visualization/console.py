"""
Console rendering of test configuration, phase results and the final summary.
"""

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.table import Table

from nexus_speedtest.common.metrics_utils import format_rate
from nexus_speedtest.common.models import (
    Direction,
    IPInfo,
    LatencyResult,
    ServerDetails,
    SpeedTestSummary,
    TestConfiguration,
    ThroughputResult,
)

RULE = "=" * 48
THIN_RULE = "-" * 48


def format_ping(result: Optional[LatencyResult]) -> str:
    return f"{result.avg_ms:.2f} ms" if result else "Failed"


def format_speed(result: Optional[ThroughputResult]) -> str:
    return f"{format_rate(result.mbps)} Mbps" if result else "Failed"


class ConsoleRenderer:
    """Prints everything the user sees outside of the live progress bars."""

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def banner(self) -> None:
        self.console.print("[bold white on blue] [Unofficial] MCMC Nexus CLI Speedtest [/]")
        self.console.print(f"[grey50]{RULE}[/]")

    def client_info(self, ip_info: IPInfo, configuration: TestConfiguration) -> None:
        self.console.print(f"[yellow]Your IP Address:    {ip_info.ip}[/]")
        self.console.print(f"[yellow]ISP:                {ip_info.isp}[/]")
        self.console.print(f"[yellow]Location:           {ip_info.location}[/]")
        self.console.print(
            f"[yellow]Test Configuration: {configuration.threads} threads, "
            f"{configuration.duration}s test duration[/]"
        )
        self.console.print(f"[grey50]{RULE}[/]")

    def server_details(self, details: ServerDetails) -> None:
        table = Table(title="MCMC Nexus Speedtest Server Details", show_header=False,
                      title_style="cyan", title_justify="left")
        table.add_column("Field", style="yellow")
        table.add_column("Value", style="yellow")
        table.add_row("Hostname", details.hostname)
        table.add_row("IP", details.ip)
        table.add_row("ISP", details.isp)
        table.add_row("Location", details.location)
        self.console.print()
        self.console.print(table)

    def phase_header(self, title: str) -> None:
        self.console.print(f"\n[cyan]=== {title} ===[/]")
        self.console.print(f"[grey50]{THIN_RULE}[/]")

    def latency_result(self, result: Optional[LatencyResult]) -> None:
        if result is None:
            self.console.print("[red]All ping attempts failed.[/]")
            return
        self.console.print(f"[green]Min Ping: {result.min_ms:.2f} ms[/]")
        self.console.print(f"[green]Avg Ping: {result.avg_ms:.2f} ms[/]")
        self.console.print(f"[green]Max Ping: {result.max_ms:.2f} ms[/]")
        if result.failed:
            self.console.print(f"[yellow]{result.failed}/{result.attempts} pings failed[/]")

    def throughput_result(self, result: ThroughputResult) -> None:
        label = result.direction.value.capitalize()
        verb = "downloaded" if result.direction is Direction.DOWNLOAD else "uploaded"
        self.console.print(f"[green]{label} Speed: {format_rate(result.mbps)} Mbps[/]")
        self.console.print(f"[grey50]Total data {verb}: {result.total_mb:.2f} MB[/]")

    def error(self, message: str) -> None:
        self.console.print(f"[red]{message}[/]")

    def summary(self, summary: SpeedTestSummary) -> None:
        config = summary.configuration
        table = Table(title="TEST RESULTS SUMMARY", show_header=False, title_style="bold white on blue")
        table.add_column("Field")
        table.add_column("Value")
        table.add_row("Timestamp", datetime.fromtimestamp(summary.timestamp).strftime("%Y-%m-%d %H:%M:%S"))
        table.add_row("IP Address", summary.ip_info.ip)
        table.add_row("ISP", summary.ip_info.isp)
        table.add_row("Location", summary.ip_info.location)
        table.add_row("Thread Count", str(config.threads))
        table.add_row("Test Duration", f"{config.duration} seconds")
        table.add_row("Ping", f"[cyan]{format_ping(summary.ping)}[/]")
        table.add_row("Download Speed", f"[green]{format_speed(summary.download)}[/]")
        table.add_row("Upload Speed", f"[blue]{format_speed(summary.upload)}[/]")
        self.console.print()
        self.console.print(table)

    def disclaimer(self) -> None:
        self.console.print(f"\n[red]{RULE}[/]")
        self.console.print("[red]Disclaimer: This is an unofficial speed test tool for MCMC Nexus.[/]")
        self.console.print("[red]Results may vary based on network conditions and server load.[/]")
        self.console.print("[red]For official speed tests, please use the MCMC Nexus app.[/]")
        self.console.print(f"[red]{RULE}[/]")
