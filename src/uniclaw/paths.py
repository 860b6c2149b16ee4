from __future__ import annotations

import os
from pathlib import Path


def uniclaw_home() -> Path:
    env = os.environ.get("UNICLAW_HOME", "").strip()
    if env:
        return Path(env).expanduser().resolve()
    return (Path.home() / ".uniclaw").resolve()


def settings_path() -> Path:
    return uniclaw_home() / "settings.yaml"
