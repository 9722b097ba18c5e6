"""
Lab report status resolution for file updates.

Pure functions: given the files currently attached and what the caller
asks for, decide which files go and which status the report ends in.
The caller's status is only authoritative for a reset to Requested;
otherwise the resulting file set decides.
"""
from dataclasses import dataclass
from typing import FrozenSet, Iterable

from apps.core.errors import ValidationFailed
from apps.lab.models import LabStatusChoices


class InvalidFileSelection(ValidationFailed):
    default_message = 'Invalid file selection'


@dataclass(frozen=True)
class FileUpdatePlan:
    status: str
    remove: FrozenSet[int]
    add_count: int
    remaining_count: int


def plan_file_update(
    attached: Iterable[int],
    desired_status: str,
    keep: Iterable[int] = (),
    remove: Iterable[int] = (),
    add_count: int = 0,
) -> FileUpdatePlan:
    """
    Resolve a file update.

    Raises:
        InvalidFileSelection: keep/remove name files not attached to the
            report, overlap, or files are added during a reset
    """
    attached = frozenset(attached)
    keep = frozenset(keep)
    remove = frozenset(remove)

    if desired_status not in LabStatusChoices.values:
        raise InvalidFileSelection('Unknown status', status=desired_status)

    unknown = (keep | remove) - attached
    if unknown:
        raise InvalidFileSelection(
            'One or more files are not attached to this lab report',
            file_ids=sorted(unknown),
        )
    overlap = keep & remove
    if overlap:
        raise InvalidFileSelection('Files cannot be both kept and removed', file_ids=sorted(overlap))

    if desired_status == LabStatusChoices.REQUESTED:
        if add_count:
            raise InvalidFileSelection('Files cannot be attached while resetting to Requested')
        return FileUpdatePlan(
            status=LabStatusChoices.REQUESTED,
            remove=attached,
            add_count=0,
            remaining_count=0,
        )

    remaining = len(attached - remove) + add_count
    return FileUpdatePlan(
        status=LabStatusChoices.COMPLETE if remaining else LabStatusChoices.SAMPLE_COLLECTED,
        remove=remove,
        add_count=add_count,
        remaining_count=remaining,
    )
