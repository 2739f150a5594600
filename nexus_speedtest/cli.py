"""
Command-line entry point for the Nexus speed test.
"""

import argparse
import logging
import math
import sys

import uvloop
from rich.console import Console
from rich.logging import RichHandler

from nexus_speedtest.common.models import TestConfiguration
from nexus_speedtest.configuration import (
    DEFAULT_FILE_SIZE_MB,
    DEFAULT_PING_COUNT,
    DEFAULT_TEST_DURATION,
    DEFAULT_THREADS,
    MAX_PING_COUNT,
    MAX_THREADS,
    MIN_PING_COUNT,
    MIN_THREADS,
    PROJECT_URL,
)

logger = logging.getLogger(__name__)


def clamp(value: float, lower: int, upper: int) -> int:
    """Clamp a numeric option into [lower, upper] and truncate it to an int."""
    return int(max(lower, min(upper, value)))


def positive_number(text: str) -> float:
    """argparse type for options that must be a number greater than zero."""
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {text!r}")
    if not math.isfinite(value) or value <= 0:
        raise argparse.ArgumentTypeError(f"must be a finite number greater than 0, got {text}")
    return value


def setup_logging(console: Console, verbose: bool = False) -> None:
    """Route log records through the console so they print above live progress bars."""
    # Set up logging (only if not already configured)
    if not logging.root.handlers:
        logging.basicConfig(
            level=logging.INFO if verbose else logging.WARNING,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


class SpeedTestCLI:
    """CLI interface for the speed test."""

    def __init__(self, console: Console = None):
        self.console = console or Console()
        self.parser = self._create_parser()

    def _create_parser(self):
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="nexus-speedtest",
            description="[Unofficial] MCMC Nexus CLI Speedtest",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=f"""
Examples:
  # Default run: 8 threads, 15 second download/upload tests, 4 pings
  nexus-speedtest

  # Short run with 16 threads and a 10 MB upload payload
  nexus-speedtest --threads 16 --duration 5 --file-size 10

For more information or to report an issue, please visit:
{PROJECT_URL}
            """,
        )

        parser.add_argument('-t', '--threads', type=float, default=DEFAULT_THREADS,
                            help=f'Number of threads for download/upload tests, '
                                 f'clamped to {MIN_THREADS}-{MAX_THREADS} (default: {DEFAULT_THREADS})')
        parser.add_argument('-d', '--duration', type=positive_number, default=DEFAULT_TEST_DURATION,
                            help=f'Duration of download/upload tests in seconds (default: {DEFAULT_TEST_DURATION})')
        parser.add_argument('-p', '--ping-count', type=float, default=DEFAULT_PING_COUNT,
                            help=f'Number of pings to perform, '
                                 f'clamped to {MIN_PING_COUNT}-{MAX_PING_COUNT} (default: {DEFAULT_PING_COUNT})')
        parser.add_argument('-f', '--file-size', type=float, default=DEFAULT_FILE_SIZE_MB,
                            help=f'Size of generated file for upload tests in MB (default: {DEFAULT_FILE_SIZE_MB})')
        parser.add_argument('--no-progress', action='store_true',
                            help='Disable live progress bars')
        parser.add_argument('-v', '--verbose', action='store_true',
                            help='Log phase and worker activity')

        return parser

    def build_configuration(self, parsed_args) -> TestConfiguration:
        """Turn parsed arguments into the immutable test configuration."""
        return TestConfiguration(
            threads=clamp(parsed_args.threads, MIN_THREADS, MAX_THREADS),
            duration=parsed_args.duration,
            ping_count=clamp(parsed_args.ping_count, MIN_PING_COUNT, MAX_PING_COUNT),
            file_size_mb=parsed_args.file_size,
        )

    async def run_speedtest(self, configuration: TestConfiguration, show_progress: bool = True):
        """Run every phase of the speed test."""
        from nexus_speedtest.runner import SpeedTestRunner

        runner = SpeedTestRunner(configuration, console=self.console, show_progress=show_progress)
        return await runner.run_speedtest()

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)
        setup_logging(self.console, parsed_args.verbose)
        configuration = self.build_configuration(parsed_args)

        try:
            uvloop.run(self.run_speedtest(configuration, show_progress=not parsed_args.no_progress))
            return 0

        except KeyboardInterrupt:
            logger.info("Speed test interrupted by user")
            return 1
        except Exception as e:
            logger.error(f"Error running speed test: {e}", exc_info=True)
            return 1


def main():
    """Main entry point."""
    cli = SpeedTestCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
