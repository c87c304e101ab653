"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    EXIT_WARNINGS = 3
    VALIDATION_ERROR = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    MAVEN_CENTRAL_URL = "https://repo1.maven.org/maven2"
    MAVEN_REPOSITORIES = [MAVEN_CENTRAL_URL]
    MAVEN_METADATA_FILE = "maven-metadata.xml"
    POM_XML_FILE = "pom.xml"

    # Baseline used when the current parent version is not a version token
    MIN_VERSION = "0.0.0"
    # Ancestor POMs followed when collecting dependency management
    MAX_PARENT_DEPTH = 10
    # Passes over ${...} placeholders before giving up on nested references
    MAX_INTERPOLATION_PASSES = 10

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "PARENTPOM_LOG_LEVEL"
    ENV_REPOSITORIES = "PARENTPOM_REPOSITORIES"
    ENV_REQUEST_TIMEOUT = "PARENTPOM_REQUEST_TIMEOUT"

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
