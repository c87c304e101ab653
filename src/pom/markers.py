"""Warning annotations on document elements."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from common.logging_utils import extra_context
from pom.tree import Marker, PomDocument

logger = logging.getLogger(__name__)


def annotate_warning(document: PomDocument, element: ET.Element, error: Exception) -> Marker:
    """Attach ``error`` to ``element`` as a warning; the tree itself is not modified."""
    marker = Marker(element=element, path=document.path_of(element), message=str(error))
    document.markers.append(marker)
    logger.warning(
        "%s%s: %s",
        f"{document.path} " if document.path else "",
        marker.path,
        marker.message,
        extra=extra_context(event="warning", component="markers", target=document.path)
    )
    return marker
