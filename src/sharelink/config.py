from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


def _default_env_paths() -> List[Path]:
    """Search order for the config file.

    Supports running `sharelink` from anywhere (pipx/global install) by using a
    stable user directory, while still honoring a project-local file.
    """

    # 1) Explicit override
    p = (os.getenv("SHARELINK_CONFIG") or "").strip()
    if p:
        return [Path(p)]

    # 2) Local (current directory)
    local = Path.cwd() / "sharelink.env"

    # 3) User-local
    home = Path.home() / ".sharelink" / "config.env"
    xdg = Path(os.getenv("XDG_CONFIG_HOME") or (Path.home() / ".config")) / "sharelink" / "config.env"

    return [local, home, xdg]


def find_config_env() -> Optional[Path]:
    for p in _default_env_paths():
        if p.exists():
            return p
    return None


@dataclass(frozen=True)
class AppConfig:
    # Per-request (connect, response headers) timeout.
    timeout_s: float = 10.0
    max_hops: int = 20

    validate: bool = True
    prefer_head: bool = True
    # Follow <meta http-equiv="refresh"> on HTML terminals (costs one body read).
    meta_refresh: bool = False

    # auto|osc52|wsl|local|none
    clipboard: str = "auto"
    proxy: str = ""


def _load_envfile(path: Optional[Path]) -> None:
    if path is None or not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        os.environ.setdefault(k.strip(), v.strip())


def load_config(env_path: Optional[Path] = None) -> AppConfig:
    env_path = env_path or find_config_env()
    _load_envfile(env_path)

    def geti(name: str, default: int) -> int:
        v = (os.getenv(name) or "").strip()
        if not v:
            return default
        try:
            return int(v)
        except ValueError:
            return default

    def getf(name: str, default: float) -> float:
        v = (os.getenv(name) or "").strip()
        if not v:
            return default
        try:
            f = float(v)
        except ValueError:
            return default
        return f if f > 0 else default

    def getb(name: str, default: bool) -> bool:
        v = (os.getenv(name) or "").strip().lower()
        if v in ("1", "true", "yes", "on"):
            return True
        if v in ("0", "false", "no", "off"):
            return False
        return default

    max_hops = geti("MAX_HOPS", AppConfig.max_hops)
    if max_hops < 0:
        max_hops = AppConfig.max_hops

    return AppConfig(
        timeout_s=getf("TIMEOUT_S", AppConfig.timeout_s),
        max_hops=max_hops,
        validate=getb("VALIDATE", AppConfig.validate),
        prefer_head=getb("PREFER_HEAD", AppConfig.prefer_head),
        meta_refresh=getb("META_REFRESH", AppConfig.meta_refresh),
        clipboard=(os.getenv("CLIPBOARD") or AppConfig.clipboard).strip().lower(),
        proxy=(os.getenv("SHARELINK_PROXY") or AppConfig.proxy).strip(),
    )
