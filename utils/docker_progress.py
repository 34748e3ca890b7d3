import subprocess
import platform
from rich.console import Console
from rich.spinner import Spinner
from rich.live import Live
from typing import List

# Platform detection for compatible symbols
IS_WINDOWS = platform.system().lower() == 'windows'

# Use ASCII-compatible symbols for Windows cmd.exe, Unicode for Linux/Mac
if IS_WINDOWS:
    SYMBOL_SUCCESS = "[OK]"
    SYMBOL_FAILED = "[X]"
    SPINNER_STYLE = "line"
else:
    SYMBOL_SUCCESS = "✅"
    SYMBOL_FAILED = "❌"
    SPINNER_STYLE = "dots"

console = Console()


class DockerProgressMonitor:
    """Context manager that shows a spinner while a docker command runs."""

    def __init__(self, message: str = "Docker operation in progress"):
        self.message = message
        self.spinner = Spinner(SPINNER_STYLE, text=f"│     {message}")
        self.live = None
        self.result = None
        self.success = False

    def __enter__(self):
        self.live = Live(self.spinner, console=console, refresh_per_second=10, transient=True)
        self.live.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.live:
            self.live.stop()

        if self.success:
            console.print(f"  │     {SYMBOL_SUCCESS} {self.message} - Complete!", style="bold green")
        elif exc_type is not None:
            console.print(f"  │     {SYMBOL_FAILED} {self.message} - Failed (Exception)", style="bold red")
        elif self.result is None:
            console.print(f"  │     {SYMBOL_FAILED} {self.message} - Docker not found", style="bold red")
        elif self.result.returncode != 0:
            console.print(f"  │     {SYMBOL_FAILED} {self.message} - Failed", style="bold red")

    def set_result(self, result):
        """Set subprocess result (None when docker is missing)."""
        self.result = result
        self.success = result is not None and result.returncode == 0


def run_docker_with_progress(
    command: List[str],
    message: str,
    cwd=None,
    encoding: str = 'utf-8',
    errors: str = 'ignore'
):
    """Run a docker command behind a spinner.

    Returns the CompletedProcess, or None if the executable was not found.
    """
    with DockerProgressMonitor(message) as monitor:
        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding=encoding,
                errors=errors
            )
        except FileNotFoundError:
            result = None
        monitor.set_result(result)

    return result


def filter_docker_errors(stderr: str) -> str:
    """Filter Docker stderr to show only real errors, not progress lines."""
    if not stderr:
        return ""

    progress_keywords = [
        'Pulling', 'Download', 'Extracting', 'Pull complete',
        'Waiting', 'Verifying', 'Already exists', 'Digest:',
        'Status:', 'Image is up to date', 'Downloaded newer image',
        'Pushing', 'Pushed', 'Layer already exists', 'Preparing'
    ]
    # compose and buildkit status lines
    progress_prefixes = ('Container ', 'Network ', 'Volume ', '#')

    error_lines = []
    for line in stderr.split('\n'):
        if any(keyword in line for keyword in progress_keywords):
            continue
        if line.strip().startswith(progress_prefixes):
            continue
        if line.strip():
            error_lines.append(line)

    return '\n'.join(error_lines)
