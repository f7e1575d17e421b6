from __future__ import annotations

from typing import Optional, Tuple

from .models import RedirectHop


class ShareLinkError(Exception):
    """Base class for every failure the CLI maps to an exit code."""

    exit_code = 1


class InputParseError(ShareLinkError):
    exit_code = 3


class ValidationError(ShareLinkError):
    exit_code = 4


class ResolutionError(ShareLinkError):
    """Resolution aborted; no URL is produced.

    Carries the URL of the failing hop, its 0-based index and the hops that
    completed before the failure.
    """

    exit_code = 1
    kind = "ResolutionError"

    def __init__(self, message: str, *, url: str, hop_index: int, hops: Tuple[RedirectHop, ...] = ()):
        super().__init__(message)
        self.url = url
        self.hop_index = hop_index
        self.hops = tuple(hops)

    def __str__(self) -> str:
        return f"{self.kind} at hop {self.hop_index} ({self.url}): {self.args[0]}"


class RedirectLoop(ResolutionError):
    exit_code = 5
    kind = "RedirectLoop"


class TooManyRedirects(ResolutionError):
    exit_code = 6
    kind = "TooManyRedirects"


class NetworkFailure(ResolutionError):
    exit_code = 7
    kind = "NetworkFailure"


class InvalidRedirect(ResolutionError):
    # Location pointing somewhere we cannot request (app deep links etc.)
    exit_code = 8
    kind = "InvalidRedirect"


class TerminalStatusError(ShareLinkError):
    exit_code = 9

    def __init__(self, url: str, status: int):
        super().__init__(f"terminal response {status} for {url}")
        self.url = url
        self.status = status


class ClipboardError(ShareLinkError):
    exit_code = 10

    def __init__(self, message: str, backend: Optional[str] = None):
        super().__init__(message)
        self.backend = backend
