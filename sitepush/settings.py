"""Per-project settings (.sitepush.yml) and deploy history."""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

import yaml

from .errors import SitepushError

logger = logging.getLogger(__name__)

SETTINGS_FILE = ".sitepush.yml"
HISTORY_FILE = Path(".sitepush") / "history.json"
HISTORY_LIMIT = 50
PLATFORM_ENV = "SITEPUSH_PLATFORM"

BUILD_KEYS = ("framework", "package_manager", "install_command", "build_command", "output_dir")
OPTION_KEYS = ("site", "project", "scope", "channel")


def load_settings(project_dir):
    path = Path(project_dir) / SETTINGS_FILE
    if not path.exists():
        data = {}
    else:
        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise SitepushError(f"Could not parse {path}: {e}") from e
        if not isinstance(data, dict):
            raise SitepushError(f"{path} must contain a mapping")

    env_platform = os.environ.get(PLATFORM_ENV)
    if env_platform:
        data["platform"] = env_platform
    return data


def save_settings(project_dir, platform, build_settings, options=None):
    path = Path(project_dir) / SETTINGS_FILE
    build = {k: v for k, v in build_settings.to_dict().items() if k in BUILD_KEYS}
    data = {"platform": platform, "build": build}
    kept = {k: v for k, v in (options or {}).items() if k in OPTION_KEYS and v}
    if kept:
        data["options"] = kept

    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    logger.debug("Saved settings to %s", path)
    return path


def load_history(project_dir):
    path = Path(project_dir) / HISTORY_FILE
    if not path.exists():
        return []
    with path.open(encoding="utf-8") as f:
        try:
            history = json.load(f)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt deploy history at %s", path)
            return []
    if not isinstance(history, list):
        return []
    return [entry for entry in history if isinstance(entry, dict)]


def record_deployment(project_dir, result, commit=None):
    path = Path(project_dir) / HISTORY_FILE
    history = load_history(project_dir)
    history.append(
        {
            "platform": result.platform,
            "url": result.url,
            "production": result.production,
            "commit": commit,
            "deployed_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
    )
    history = history[-HISTORY_LIMIT:]

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(history, f, indent=2)
    return history[-1]
