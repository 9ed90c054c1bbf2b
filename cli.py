"""
Command Line Interface for the z/OS FTP job connector
Submits a JCL file, waits for the job and saves its log
"""

import click
import logging
import signal
import sys
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.logging import RichHandler
from rich.markup import escape

from config.settings import Settings, get_settings
from zftp.errors import JobStepFailed
from zftp.poller import CancellationToken
from zftp.step import JobStep, StepOutcome, log_file_name

# Setup rich console
console = Console()

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings, verbose: bool = False):
    """Configure logging from settings"""
    level = logging.DEBUG if verbose else getattr(logging, settings.logging.level.upper(), logging.INFO)
    handlers = []

    if settings.logging.console:
        handlers.append(RichHandler(console=console, rich_tracebacks=True, show_path=False))
    if settings.logging.file:
        file_handler = logging.FileHandler(settings.logging.file)
        file_handler.setFormatter(logging.Formatter(settings.logging.format))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=handlers or [logging.NullHandler()],
        force=True
    )


class JobSubmitCLI:
    """Drive one job step from the command line"""

    def __init__(self, settings: Settings):
        """
        Initialize CLI

        Args:
            settings: Effective settings after command line overrides
        """
        self.settings = settings
        self.token = CancellationToken()

    def install_signal_handlers(self):
        """Abort the wait on Ctrl+C or SIGTERM"""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        logger.warning(f"Received signal {signum}, cancelling wait...")
        self.token.cancel()

    def build_step(self, job: str) -> JobStep:
        settings = self.settings
        return JobStep(
            host=settings.connection.host,
            port=settings.connection.port,
            username=settings.credentials.username or "",
            password=settings.credentials.password or "",
            job=job,
            wait=settings.job.wait,
            wait_time=settings.job.wait_time,
            delete_job_from_spool=settings.job.delete_log,
            job_log_to_console=False,
            max_cc=settings.job.max_cc,
            jes_interface_level1=settings.job.jes_interface_level1,
            connector_options={
                "timeout": settings.connection.timeout,
                "poll_interval": settings.job.poll_interval,
            },
        )

    def run(self, job: str) -> StepOutcome:
        step = self.build_step(job)
        with console.status(f"Submitting job to {step.host}:{step.port}..."):
            return step.run(token=self.token)

    def save_log(self, outcome: StepOutcome, output: Path) -> Optional[Path]:
        """
        Write the job log

        Args:
            outcome: Step outcome with the fetched log
            output: File, or directory that gets a generated file name

        Returns:
            Optional[Path]: Written file, None when there was no log
        """
        if not outcome.log:
            return None

        if output.is_dir():
            result = outcome.result
            output = output / log_file_name(result.job_name, result.completion_code,
                                            self.settings.connection.host, result.job_id)
        output.write_bytes(outcome.log)
        return output

    def display_result(self, outcome: StepOutcome):
        """Display the result in table format"""
        result = outcome.result
        table = Table(title="Job Result")
        table.add_column("Job ID", style="cyan")
        table.add_column("Job Name", style="magenta")
        table.add_column("Completion Code", style="yellow")
        table.add_column("Status", style="green" if outcome.accepted else "red")

        table.add_row(
            result.job_id or "-",
            result.job_name or "-",
            outcome.printable_cc or "-",
            "ACCEPTED" if outcome.accepted else "FAILED"
        )

        console.print(table)

    def display_log(self, outcome: StepOutcome):
        text = outcome.log.decode("ascii", errors="replace")
        console.print(Panel(escape(text), title=f"Job log {outcome.result.job_id}", border_style="blue"))


@click.command()
@click.argument('jcl', type=click.File('r'))
@click.option('--host', '-h', help='LPAR name or IP address')
@click.option('--port', '-p', type=int, help='FTP port')
@click.option('--username', '-u', help='User ID')
@click.option('--password', '-pw', help='User password')
@click.option('--wait/--no-wait', default=None, help='Wait for the job to complete')
@click.option('--wait-time', '-t', type=click.IntRange(min=0), help='Minutes to wait, 0 waits forever')
@click.option('--delete-log', is_flag=True, default=None, help='Delete the job log from spool afterwards')
@click.option('--jes-level1', is_flag=True, default=None, help='FTP server runs JESINTERFACELEVEL=1')
@click.option('--max-cc', help='Highest accepted completion code (up to 4 digits)')
@click.option('--poll-interval', type=float, help='Seconds between spool polls')
@click.option('--output', '-o', type=click.Path(path_type=Path), help='File or directory for the job log')
@click.option('--log-to-console', is_flag=True, help='Print the job log')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True), help='Configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
def main(jcl, host, port, username, password, wait, wait_time, delete_log, jes_level1,
         max_cc, poll_interval, output, log_to_console, config_file, verbose):
    """Submit a JCL job to z/OS over FTP and wait for its completion code"""

    settings = get_settings(config_file)

    # Command line overrides
    overrides = {
        ('connection', 'host'): host,
        ('connection', 'port'): port,
        ('credentials', 'username'): username,
        ('credentials', 'password'): password,
        ('job', 'wait'): wait,
        ('job', 'wait_time'): wait_time,
        ('job', 'delete_log'): delete_log,
        ('job', 'jes_interface_level1'): jes_level1,
        ('job', 'max_cc'): max_cc,
        ('job', 'poll_interval'): poll_interval,
    }
    data = settings.model_dump()
    for (section, key), value in overrides.items():
        if value is not None:
            data[section][key] = value
    try:
        settings = Settings(**data)
    except ValueError as e:
        console.print(f"Invalid configuration: {escape(str(e))}", style="red")
        sys.exit(2)

    setup_logging(settings, verbose)

    if not settings.credentials.username or not settings.credentials.password:
        console.print("Please set a username and a password", style="red")
        sys.exit(2)

    cli = JobSubmitCLI(settings)
    cli.install_signal_handlers()
    outcome = cli.run(jcl.read())

    console.print(escape(outcome.report))
    if (log_to_console or settings.job.job_log_to_console) and outcome.log:
        cli.display_log(outcome)
    if output:
        saved = cli.save_log(outcome, output)
        if saved:
            console.print(f"Job log saved to {escape(str(saved))}", style="cyan")

    cli.display_result(outcome)

    try:
        outcome.check()
    except JobStepFailed as e:
        console.print(escape(str(e)), style="red")
        sys.exit(1)
    sys.exit(0)


if __name__ == '__main__':
    main()
