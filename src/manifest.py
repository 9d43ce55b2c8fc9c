"""Package descriptor (package.json) helpers for the CLI and the installer."""

import json
import logging
import os
from typing import Any, Dict

from constants import Constants
from common.errors import FilesystemError

logger = logging.getLogger(__name__)


def read_package_json(package_json_path: str) -> Dict[str, Any]:
    """Load a package descriptor.

    Raises:
        FilesystemError: The file is missing, unreadable or not a JSON object.
    """
    try:
        with open(package_json_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as exc:
        raise FilesystemError(f'{package_json_path} not found, run "gpm init" first') from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise FilesystemError(f"Cannot read {package_json_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise FilesystemError(f"{package_json_path} is not a JSON object")
    return data


def get_package_dependencies(package_json_path: str, prod: bool = False) -> Dict[str, str]:
    """Return the root requirement set declared by a project.

    ``devDependencies`` are merged over ``dependencies`` unless ``prod`` is set.
    """
    package_json = read_package_json(package_json_path)
    dependencies = dict(package_json.get("dependencies") or {})
    if not prod:
        dependencies.update(package_json.get("devDependencies") or {})
    return dependencies


def initialize_project(working_dir: str) -> None:
    """Scaffold ``package.json`` and the module root when they are absent."""
    logger.info("Initializing a new project in directory: %s", working_dir)
    package_json_path = os.path.join(working_dir, Constants.PACKAGE_JSON_FILE)
    modules_dir = os.path.join(working_dir, Constants.NODE_MODULES_DIR)

    if os.path.exists(package_json_path):
        logger.debug("Project already initialized in directory: %s", working_dir)
    else:
        base_package = {
            "name": os.path.basename(os.path.abspath(working_dir)),
            "description": "",
            "version": "0.0.0",
            "dependencies": {},
            "devDependencies": {},
        }
        try:
            with open(package_json_path, "w", encoding="utf-8") as fh:
                json.dump(base_package, fh, indent=2)
        except OSError as exc:
            raise FilesystemError(f"Cannot write {package_json_path}: {exc}") from exc
        logger.info('"%s" file created in directory: %s', Constants.PACKAGE_JSON_FILE, working_dir)

    if os.path.isdir(modules_dir):
        logger.debug('"%s" directory already exists in directory: %s', Constants.NODE_MODULES_DIR, working_dir)
    else:
        try:
            os.makedirs(modules_dir, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Cannot create {modules_dir}: {exc}") from exc
        logger.info('"%s" directory created in directory: %s', Constants.NODE_MODULES_DIR, working_dir)
