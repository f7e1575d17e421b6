from __future__ import annotations

from dataclasses import replace
from typing import Optional

import typer

from . import log
from .clipboard import BACKEND_CHOICES, detect_backend
from .config import load_config
from .errors import ClipboardError, ResolutionError, ShareLinkError, TerminalStatusError
from .pipeline import resolve_share_link


app = typer.Typer(add_completion=False)

EXIT_INTERRUPTED = 130


def _report_hops(e: ResolutionError) -> None:
    for i, hop in enumerate(e.hops):
        log.info(f"  [{i}] {hop.method} {hop.url} -> {hop.status} {hop.location or ''}")


@app.command()
def main(
    url: str = typer.Argument(..., metavar="URL", help="Share link to resolve."),
    no_validate: bool = typer.Option(
        False, "--no-validate", help="Accept any http(s) URL; only generic tracking parameters are stripped."
    ),
    max_hops: Optional[int] = typer.Option(None, "--max-hops", min=0, help="Maximum redirects to follow (default 20)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="Per-request timeout in seconds (default 10)."),
    meta_refresh: Optional[bool] = typer.Option(
        None, "--meta-refresh/--no-meta-refresh", help="Also follow HTML <meta http-equiv=refresh> redirects."
    ),
    get: bool = typer.Option(False, "--get", help="Request every hop with GET instead of trying HEAD first."),
    clipboard: Optional[str] = typer.Option(None, "--clipboard", help=f"Clipboard backend: {'|'.join(BACKEND_CHOICES)}."),
    no_clipboard: bool = typer.Option(False, "--no-clipboard", help="Only print the result."),
    require_clipboard: bool = typer.Option(
        False, "--require-clipboard", help="Exit non-zero (after printing) when the clipboard write fails."
    ),
    strict_status: bool = typer.Option(
        False, "--strict-status", help="Fail when the chain ends in a 4xx/5xx response."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every hop to stderr."),
) -> None:
    """Resolve a share link to its canonical, tracking-free URL and copy it to the clipboard."""

    log.set_verbose(verbose)
    cfg = load_config()

    # CLI overrides > env/config file.
    cfg = replace(
        cfg,
        validate=cfg.validate and not no_validate,
        max_hops=cfg.max_hops if max_hops is None else max_hops,
        timeout_s=cfg.timeout_s if timeout is None else timeout,
        meta_refresh=cfg.meta_refresh if meta_refresh is None else meta_refresh,
        prefer_head=cfg.prefer_head and not get,
        clipboard="none" if no_clipboard else (clipboard or cfg.clipboard),
    )

    try:
        result = resolve_share_link(url, cfg)
        res = result.resolution
        if res.is_error_status:
            if strict_status:
                raise TerminalStatusError(res.final_url, res.status)
            log.warn(f"link ended in HTTP {res.status} at {res.final_url}")
    except ResolutionError as e:
        log.err(str(e))
        _report_hops(e)
        raise typer.Exit(e.exit_code)
    except ShareLinkError as e:
        log.err(str(e))
        raise typer.Exit(e.exit_code)
    except KeyboardInterrupt:
        log.err("interrupted")
        raise typer.Exit(EXIT_INTERRUPTED)

    log.info(f"{res.redirects} redirect(s), terminal status {res.status}")
    typer.echo(result.canonical_url)

    # Resolution already succeeded; a clipboard failure never hides the printed URL.
    code = 0
    try:
        backend = detect_backend(choice=cfg.clipboard)
        backend.copy(result.canonical_url)
        log.info(f"copied to clipboard via {getattr(backend, 'used', None) or backend.name}")
    except ClipboardError as e:
        log.warn(f"could not copy to clipboard: {e}")
        if require_clipboard:
            code = e.exit_code

    raise typer.Exit(code)


if __name__ == "__main__":
    app()
