"""Session-scoped cache of published versions."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional, Tuple

from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

CoordinateKey = Tuple[str, str]


class MetadataCache:
    """Maps ``(group_id, artifact_id)`` to the versions published for it.

    One instance belongs to one document session. Entries are filled lazily
    and never invalidated, so each coordinate is fetched at most once.
    """

    def __init__(self):
        self._versions: Dict[CoordinateKey, Tuple[str, ...]] = {}
        self.fetch_count = 0

    def __contains__(self, key: CoordinateKey) -> bool:
        return key in self._versions

    def __len__(self) -> int:
        return len(self._versions)

    def get(self, group_id: str, artifact_id: str) -> Optional[Tuple[str, ...]]:
        return self._versions.get((group_id, artifact_id))

    def put(self, group_id: str, artifact_id: str, versions: Iterable[str]) -> Tuple[str, ...]:
        stored = tuple(versions)
        self._versions[(group_id, artifact_id)] = stored
        return stored

    def get_or_fetch(
        self,
        group_id: str,
        artifact_id: str,
        fetch: Callable[[str, str], Iterable[str]],
    ) -> Tuple[str, ...]:
        """Return cached versions, calling ``fetch`` once on a miss.

        Exceptions from ``fetch`` propagate and leave the cache unchanged.
        """
        cached = self.get(group_id, artifact_id)
        if cached is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Metadata cache hit",
                    extra=extra_context(event="cache_hit", component="metadata_cache",
                                        target=f"{group_id}:{artifact_id}")
                )
            return cached
        self.fetch_count += 1
        return self.put(group_id, artifact_id, fetch(group_id, artifact_id))
