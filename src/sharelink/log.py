from rich.console import Console
from rich.markup import escape

# stdout is reserved for the resolved URL
console = Console(stderr=True, highlight=False)

_verbose = False


def set_verbose(on: bool) -> None:
    global _verbose
    _verbose = bool(on)


def info(msg):
    if _verbose:
        console.log(f"[bold cyan]INFO[/] {escape(str(msg))}")


def warn(msg): console.log(f"[bold yellow]WARN[/] {escape(str(msg))}")
def err(msg):  console.log(f"[bold red]ERR[/] {escape(str(msg))}")
