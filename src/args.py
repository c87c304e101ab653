"""Argument parsing functionality for parentpom."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="parentpom",
        description=(
            "parentpom - change the parent of Maven pom.xml files"
        ),
        add_help=True,
    )

    parser.add_argument("paths",
                        metavar="PATH",
                        help="pom.xml files or directories containing one",
                        nargs="+")
    parser.add_argument("-r", "--recursive",
                        dest="RECURSIVE",
                        help="Recursively scan directories for pom.xml files.",
                        action="store_true")

    recipe = parser.add_argument_group("parent change")
    recipe.add_argument("--old-group-id",
                        dest="OLD_GROUP_ID",
                        help="Group ID (glob) of the parent to change away from",
                        action="store", type=str)
    recipe.add_argument("--old-artifact-id",
                        dest="OLD_ARTIFACT_ID",
                        help="Artifact ID (glob) of the parent to change away from",
                        action="store", type=str)
    recipe.add_argument("--new-version",
                        dest="NEW_VERSION",
                        help="Exact version or selector, e.g. 29.X, ~1.2, latest.release",
                        action="store", type=str)
    recipe.add_argument("--new-group-id",
                        dest="NEW_GROUP_ID",
                        help="Group ID of the new parent (defaults to the current one)",
                        action="store", type=str)
    recipe.add_argument("--new-artifact-id",
                        dest="NEW_ARTIFACT_ID",
                        help="Artifact ID of the new parent (defaults to the current one)",
                        action="store", type=str)
    recipe.add_argument("--old-relative-path",
                        dest="OLD_RELATIVE_PATH",
                        help="Only change parents whose relativePath matches this glob",
                        action="store", type=str)
    recipe.add_argument("--new-relative-path",
                        dest="NEW_RELATIVE_PATH",
                        help="relativePath for the new parent; an empty string writes <relativePath />",
                        action="store", type=str)
    recipe.add_argument("--version-pattern",
                        dest="VERSION_PATTERN",
                        help="Regex the version qualifier must match, e.g. -jre",
                        action="store", type=str)
    recipe.add_argument("--allow-downgrades",
                        dest="ALLOW_DOWNGRADES",
                        help="Allow selecting a version older than the current one",
                        action="store_true", default=None)
    recipe.add_argument("--retain-version",
                        dest="RETAIN_VERSIONS",
                        help="group:artifact[:version] to keep an explicit version for (repeatable)",
                        action="append", type=str)

    parser.add_argument("--repository",
                        dest="REPOSITORIES",
                        help="Maven repository base URL (repeatable; replaces the configured list)",
                        action="append", type=str)
    parser.add_argument("-w", "--write",
                        dest="WRITE",
                        help="Write changes back instead of printing a diff",
                        action="store_true")
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to a JSON report",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--error-on-warnings",
                        dest="ERROR_ON_WARNINGS",
                        help="Exit with a non-zero status code if warnings are present.",
                        action="store_true")
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")

    return parser.parse_args(argv)
