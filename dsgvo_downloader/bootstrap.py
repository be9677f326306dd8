from __future__ import annotations

import os
from pathlib import Path


def load_dotenv(path: str | None = None) -> int:
    """
    Подхватывает переменные из .env, не перезаписывая уже заданные.
    Путь берётся из DOTENV_PATH, если не передан явно. Возвращает число новых переменных.
    """
    env_path = Path(path or os.getenv("DOTENV_PATH", ".env"))
    if not env_path.is_file():
        return 0

    loaded = 0
    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key or key in os.environ:
            continue
        os.environ[key] = value.strip().strip('"').strip("'")
        loaded += 1
    return loaded
