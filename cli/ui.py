import logging
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text
import inquirer

console = Console()


def setup_logging(level="INFO"):
    '''Route logging through Rich'''
    logging.basicConfig(
        level=str(level).upper(),
        format="%(message)s",
        handlers=[
            RichHandler(console=console, rich_tracebacks=True, show_path=False)
        ],
        force=True,
    )


def show_success(message):
    '''Show success message in green'''
    console.print(f"  ✅ {message}", style="bold green")

def show_error(message):
    '''Show error message in red'''
    console.print(f"  ❌ {message}", style="bold red")

def show_warning(message):
    '''Show warning message in yellow'''
    console.print(f"  ⚠️  {message}", style="yellow")

def show_info(message):
    '''Show info message in blue'''
    console.print(f"  ℹ️  {message}", style="bold blue")

def print_header():
    '''Print the BENCHDOCK header'''
    logo = Text()
    logo.append("  BENCHDOCK", style="bold cyan")
    logo.append("  v1.0", style="bold white")
    logo.append("  |  Frappe bench on Docker", style="dim")
    console.print(Panel(logo, border_style="cyan", padding=(0, 2)))

def show_step(message, status="done"):
    '''Show a progress step with vertical connecting line.
    status: "done", "active", "error"
    '''
    icons = {"done": "✅", "active": "⏳", "error": "❌"}
    styles = {"done": "bold green", "active": "bold cyan", "error": "bold red"}
    icon = icons.get(status, "•")
    style = styles.get(status, "white")
    console.print(f"  │", style="dim cyan")
    console.print(f"  ├── {icon} {message}", style=style)

def show_step_final(message, success=True):
    '''Show the final step (uses end connector)'''
    console.print(f"  │", style="dim cyan")
    if success:
        console.print(f"  └── ✅ {message}", style="bold green")
    else:
        console.print(f"  └── ❌ {message}", style="bold red")

def show_step_detail(message):
    '''Show a detail line under a step, maintaining the vertical line'''
    console.print(f"  │     {message}", style="dim green")

def show_result_panel(content, title="Success"):
    '''Show result info in a styled panel'''
    panel = Panel(
        content,
        title=f"[bold green]{title}[/bold green]",
        border_style="green",
        padding=(1, 2)
    )
    console.print()
    console.print(panel)

def confirm(message, default=False):
    '''Yes/no question, returns False if the prompt is aborted'''
    answer = inquirer.prompt([
        inquirer.Confirm('confirmed', message=message, default=default)
    ])
    if not answer:
        return False
    return bool(answer['confirmed'])
