from __future__ import annotations

import base64
import os
import platform
import subprocess
from typing import List, Mapping, Optional, Sequence, TextIO

import pyperclip

from .errors import ClipboardError


BACKEND_CHOICES = ("auto", "osc52", "wsl", "local", "none")


class ClipboardBackend:
    """Something that can put a string on the user's clipboard.

    `copy` returns nothing on success and raises ClipboardError otherwise.
    """

    name = "base"

    def copy(self, text: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class NullBackend(ClipboardBackend):
    name = "none"

    def copy(self, text: str) -> None:
        return None


class PyperclipBackend(ClipboardBackend):
    """Local clipboard (X11, Wayland, macOS, Windows, RDP-redirected)."""

    name = "local"

    def __init__(self, verify: bool = True):
        self.verify = verify

    def copy(self, text: str) -> None:
        try:
            pyperclip.copy(text)
            if self.verify and pyperclip.paste() != text:
                raise ClipboardError("clipboard did not retain the copied text", self.name)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"local clipboard unavailable: {e}", self.name) from e


class WslBackend(ClipboardBackend):
    """Windows clipboard from inside WSL via clip.exe."""

    name = "wsl"

    def __init__(self, exe: str = "clip.exe", timeout_s: float = 5.0):
        self.exe = exe
        self.timeout_s = timeout_s

    def copy(self, text: str) -> None:
        # clip.exe reads the console code page unless given UTF-16 with a BOM
        data = ("\ufeff" + text).encode("utf-16-le")
        try:
            proc = subprocess.run([self.exe], input=data, capture_output=True, timeout=self.timeout_s)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ClipboardError(f"{self.exe} failed: {e}", self.name) from e
        if proc.returncode != 0:
            detail = (proc.stderr or b"").decode("utf-8", errors="replace").strip()
            raise ClipboardError(f"{self.exe} exited {proc.returncode}: {detail}", self.name)


class Osc52Backend(ClipboardBackend):
    """Ask the user's terminal emulator to set its clipboard (works over SSH)."""

    name = "osc52"

    def __init__(self, stream: Optional[TextIO] = None, env: Optional[Mapping[str, str]] = None, tty: str = "/dev/tty"):
        self.stream = stream
        self.env = os.environ if env is None else env
        self.tty = tty

    def sequence(self, text: str) -> str:
        payload = base64.b64encode(text.encode("utf-8")).decode("ascii")
        seq = f"\033]52;c;{payload}\a"
        if self.env.get("TMUX"):
            return "\033Ptmux;" + seq.replace("\033", "\033\033") + "\033\\"
        if (self.env.get("TERM") or "").startswith("screen"):
            return "\033P" + seq + "\033\\"
        return seq

    def copy(self, text: str) -> None:
        seq = self.sequence(text)
        if self.stream is not None:
            self.stream.write(seq)
            self.stream.flush()
            return
        try:
            with open(self.tty, "w", encoding="ascii") as f:
                f.write(seq)
                f.flush()
        except OSError as e:
            raise ClipboardError(f"cannot write to {self.tty}: {e}", self.name) from e


class FallbackBackend(ClipboardBackend):
    """Try backends in order; fail only when every one of them failed."""

    def __init__(self, backends: Sequence[ClipboardBackend]):
        self.backends = list(backends)
        self.name = "+".join(b.name for b in self.backends)
        self.used: Optional[str] = None

    def copy(self, text: str) -> None:
        errors: List[str] = []
        for b in self.backends:
            try:
                b.copy(text)
            except ClipboardError as e:
                errors.append(f"{b.name}: {e}")
                continue
            self.used = b.name
            return
        raise ClipboardError("; ".join(errors) or "no clipboard backend", self.name)


def is_ssh(env: Mapping[str, str]) -> bool:
    return any(env.get(k) for k in ("SSH_CLIENT", "SSH_TTY", "SSH_CONNECTION"))


def is_wsl(env: Mapping[str, str], release: Optional[str] = None) -> bool:
    if env.get("WSL_DISTRO_NAME") or env.get("WSL_INTEROP"):
        return True
    release = platform.release() if release is None else release
    return "microsoft" in release.lower()


def detect_backend(
    env: Optional[Mapping[str, str]] = None,
    choice: str = "auto",
    release: Optional[str] = None,
) -> ClipboardBackend:
    """Pick the clipboard backend for this session.

    An explicit `choice` wins. Otherwise: SSH sessions use OSC 52 (after the
    forwarded X display, if there is one), WSL uses clip.exe then the local
    clipboard, and everything else the local clipboard.
    """

    env = os.environ if env is None else env
    choice = (choice or "auto").strip().lower()

    if choice == "none":
        return NullBackend()
    if choice == "osc52":
        return Osc52Backend(env=env)
    if choice == "wsl":
        return WslBackend()
    if choice == "local":
        return PyperclipBackend()
    if choice != "auto":
        raise ClipboardError(f"unknown clipboard backend {choice!r} (choose from {', '.join(BACKEND_CHOICES)})")

    if is_ssh(env):
        if env.get("DISPLAY"):
            return FallbackBackend([PyperclipBackend(), Osc52Backend(env=env)])
        return Osc52Backend(env=env)
    if is_wsl(env, release):
        return FallbackBackend([WslBackend(), PyperclipBackend()])
    return PyperclipBackend()
