import os
import time
from pathlib import Path
from typing import Dict

APPS_DIR = Path(__file__).resolve().parents[2] / "apps"
APPS_PACKAGE = "src.apps"


def get_apps() -> Dict[str, str]:
    return {
        name: os.path.join(APPS_DIR, name)
        for name in os.listdir(APPS_DIR)
        if os.path.isdir(os.path.join(APPS_DIR, name)) and not name.startswith("__")
    }


_cache: dict[str, tuple[float, dict[str, list[str]]]] = {}
_CACHE_TTL = 60 * 60  # seconds


def get_app_modules(child_name: str) -> dict[str, list[str]]:
    """Return dotted module names under ``<app>/<child_name>`` for every app, TTL cached."""
    now = time.time()
    if child_name in _cache:
        ts, data = _cache[child_name]
        if now - ts < _CACHE_TTL:
            return data

    result: dict[str, list[str]] = {}

    for app_name, app_path in get_apps().items():
        child_path = os.path.join(app_path, child_name)
        if not os.path.isdir(child_path):
            continue
        result[app_name] = sorted(
            convert_path_to_module(app_name, child_name, file)
            for file in os.listdir(child_path)
            if file.endswith(".py") and "__init__" not in file
        )

    _cache[child_name] = (now, result)
    return result


def convert_path_to_module(app_name: str, child_name: str, file_name: str) -> str:
    return ".".join((APPS_PACKAGE, app_name, child_name, file_name.removesuffix(".py")))
