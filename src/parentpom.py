"""parentpom - change the parent of Maven pom.xml files.

    Returns:
        int: Exit code
"""
import difflib
import json
import logging
import os
import sys
import xml.etree.ElementTree as ET
from typing import List

from args import parse_args
from cli_config import apply_cli_overrides, apply_config, apply_env_overrides, build_options, load_config_file
from common.logging_utils import configure_logging
from constants import ExitCodes
from errors import ValidationError
from pom.tree import PomDocument
from recipes.change_parent import ChangeParentPom, DocumentResult
from registry.maven.client import MavenRepositoryClient, scan_source

logger = logging.getLogger(__name__)


def collect_pom_paths(paths: List[str], recursive: bool = False) -> List[str]:
    """Expand directories to the pom.xml files they contain."""
    found: List[str] = []
    for path in paths:
        if os.path.isdir(path):
            found.extend(scan_source(path, recursive))
        else:
            found.append(path)
    return found


def export_json(results: List[DocumentResult], recipe: ChangeParentPom, path: str) -> None:
    """Exports per-document results and metadata failures to a JSON file.

    Args:
        results (list): Results of every visited document.
        recipe (ChangeParentPom): Recipe whose failure ledger is reported.
        path (str): File path to export the JSON.
    """
    report = {
        "results": [r.to_dict() for r in results],
        "metadata_failures": [row.to_dict() for row in recipe.failures.rows],
    }
    try:
        with open(path, "w", encoding="utf-8") as file:
            json.dump(report, file, indent=2)
        logging.info("JSON file has been successfully exported at: %s", path)
    except OSError as e:
        logging.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def run(argv=None) -> int:
    """Run the CLI and return the exit code."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)

    cfg = {}
    if args.CONFIG:
        try:
            cfg = load_config_file(args.CONFIG)
        except (OSError, ValueError) as e:
            logger.error("Unable to load config file: %s", e)
            return ExitCodes.FILE_ERROR.value
    apply_config(cfg)
    apply_env_overrides()
    apply_cli_overrides(args)

    try:
        options = build_options(args, cfg)
        recipe = ChangeParentPom(options, MavenRepositoryClient())
    except ValidationError as e:
        for error in e.errors:
            logger.error("Invalid option: %s", error)
        return ExitCodes.VALIDATION_ERROR.value
    except ValueError as e:
        logger.error("Invalid option: %s", e)
        return ExitCodes.VALIDATION_ERROR.value

    file_errors = False
    results: List[DocumentResult] = []
    for path in collect_pom_paths(args.paths, args.RECURSIVE):
        try:
            with open(path, encoding="utf-8") as fh:
                original = fh.read()
            document = PomDocument.parse(original, path=path)
        except (OSError, ET.ParseError) as e:
            logger.error("Couldn't read %s: %s", path, e)
            file_errors = True
            continue

        result = recipe.visit(document)
        results.append(result)
        if not result.changed:
            continue
        updated = document.to_string()
        if args.WRITE:
            try:
                document.write()
            except OSError as e:
                logger.error("Couldn't write %s: %s", path, e)
                file_errors = True
        elif not args.QUIET:
            sys.stdout.writelines(difflib.unified_diff(
                original.splitlines(keepends=True), updated.splitlines(keepends=True),
                fromfile=f"a/{path}", tofile=f"b/{path}",
            ))

    if args.OUTPUT:
        export_json(results, recipe, args.OUTPUT)

    if not args.QUIET:
        changed = sum(1 for r in results if r.changed)
        warned = sum(1 for r in results if r.warnings)
        print(f"{len(results)} pom.xml checked, {changed} changed, {warned} with warnings")

    if file_errors:
        return ExitCodes.FILE_ERROR.value
    if args.ERROR_ON_WARNINGS and any(r.warnings for r in results):
        return ExitCodes.EXIT_WARNINGS.value
    return ExitCodes.SUCCESS.value


def main() -> None:
    """Console entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
