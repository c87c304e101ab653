"""Orders the cleanup passes around the parent edits."""
from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from pom.edits import Edit, EditPlan, apply_edit
from recipes.dependency_versions import RemoveRedundantVersionsOperation, RetainVersionsOperation
from recipes.session import DeferredOperation, ResolutionSession
from versioning.models import RetainedVersion


class ParentEditOperation(DeferredOperation):
    """Applies one planned edit to the document's ``<parent>``."""

    def __init__(self, edit: Edit):
        self.edit = edit
        self.description = f"{type(edit).__name__} {edit.field.value}={edit.new_value!r}"

    def apply(self, session: ResolutionSession) -> bool:
        return apply_edit(session.document, self.edit)


def retained_version_set(entries: Iterable[str]) -> Tuple[RetainedVersion, ...]:
    """Parse validated ``group:artifact[:version]`` entries, dropping duplicates."""
    seen = []
    for entry in entries:
        retained = RetainedVersion.parse(entry)
        if retained not in seen:
            seen.append(retained)
    return tuple(seen)


def schedule(plan: EditPlan, retained: Sequence[RetainedVersion] = ()) -> List[DeferredOperation]:
    """Operations realizing ``plan``, in the order they must be applied.

    1. pin retained versions while the old dependency management is in force
    2. drop redundant versions, sparing the retained ones
    3. the plan's edits, insertion last
    4. drop versions the new parent makes redundant, sparing what step 1
       pinned or kept

    Steps 1 and 2 guard the edits: if either fails, nothing is applied.
    An empty plan schedules nothing.
    """
    if plan.is_empty:
        return []
    operations: List[DeferredOperation] = [RetainVersionsOperation(r) for r in retained]
    operations.append(RemoveRedundantVersionsOperation(frozenset(retained), guards_edits=True))
    operations.extend(ParentEditOperation(edit) for edit in plan)
    operations.append(RemoveRedundantVersionsOperation(None))
    return operations
