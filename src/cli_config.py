"""Configuration layering for the CLI.

Precedence, lowest to highest: built-in ``Constants``, the config file,
environment variables, command-line flags. Runtime tunables are written onto
``Constants``; recipe options are merged into a ``ChangeParentOptions``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from recipes.change_parent import ChangeParentOptions

logger = logging.getLogger(__name__)

# argparse dest -> ChangeParentOptions field
_OPTION_FLAGS = {
    "OLD_GROUP_ID": "old_group_id",
    "OLD_ARTIFACT_ID": "old_artifact_id",
    "NEW_VERSION": "new_version",
    "NEW_GROUP_ID": "new_group_id",
    "NEW_ARTIFACT_ID": "new_artifact_id",
    "OLD_RELATIVE_PATH": "old_relative_path",
    "NEW_RELATIVE_PATH": "new_relative_path",
    "VERSION_PATTERN": "version_pattern",
    "ALLOW_DOWNGRADES": "allow_version_downgrades",
    "RETAIN_VERSIONS": "retain_versions",
}


def load_config_file(path: str) -> Dict[str, Any]:
    """Read a YAML or JSON config file into a mapping.

    Raises:
        OSError: when the file cannot be read.
        ValueError: when it does not parse or is not a mapping.
    """
    with open(path, encoding="utf-8") as fh:
        text = fh.read()
    try:
        if path.lower().endswith(".json"):
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"could not parse config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must contain a mapping at the top level")
    return data


def apply_config(cfg: Dict[str, Any]) -> None:
    """Apply runtime tunables from a loaded config mapping."""
    repositories = cfg.get("repositories")
    if repositories:
        if isinstance(repositories, str):
            repositories = [repositories]
        Constants.MAVEN_REPOSITORIES = [str(r) for r in repositories]
    if cfg.get("request_timeout") is not None:
        Constants.REQUEST_TIMEOUT = float(cfg["request_timeout"])
    if cfg.get("http_retry_max") is not None:
        Constants.HTTP_RETRY_MAX = max(1, int(cfg["http_retry_max"]))


def apply_env_overrides(environ: Optional[Dict[str, str]] = None) -> None:
    """Apply PARENTPOM_* environment overrides."""
    env = os.environ if environ is None else environ
    repositories = env.get(Constants.ENV_REPOSITORIES)
    if repositories and repositories.strip():
        Constants.MAVEN_REPOSITORIES = [r.strip() for r in repositories.split(",") if r.strip()]
    timeout = env.get(Constants.ENV_REQUEST_TIMEOUT)
    if timeout:
        try:
            Constants.REQUEST_TIMEOUT = float(timeout)
        except ValueError:
            logger.warning("Ignoring non-numeric %s=%r", Constants.ENV_REQUEST_TIMEOUT, timeout)


def apply_cli_overrides(args) -> None:
    """Apply command-line tunables."""
    if getattr(args, "REPOSITORIES", None):
        Constants.MAVEN_REPOSITORIES = list(args.REPOSITORIES)


def build_options(args, cfg: Optional[Dict[str, Any]] = None) -> ChangeParentOptions:
    """Merge the config file's ``change_parent`` section with CLI flags."""
    section = (cfg or {}).get("change_parent") or {}
    merged = ChangeParentOptions.normalize_keys(section)
    for dest, name in _OPTION_FLAGS.items():
        value = getattr(args, dest, None)
        if value is not None:
            merged[name] = value
    return ChangeParentOptions.from_mapping(merged)
