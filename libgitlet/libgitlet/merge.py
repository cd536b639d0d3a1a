"""Three-way merge of two commits against their split point.

Merging works on whole files: each file name is resolved by comparing the blob ids it
has in the current commit, the given commit and the split point, where a missing file
is distinct from every blob id."""

import logging
from dataclasses import dataclass, field
from enum import Enum

from .constants import CONFLICT_END_MARKER, CONFLICT_HEAD_MARKER, CONFLICT_SEPARATOR
from .objects import GitletError, HashRef, hash_bytes
from .plumbing import ObjectStore
from .stage import Stage
from .workdir import WorkingDir

logger = logging.getLogger(__name__)


class MergeError(GitletError):
    """Exception raised for merge-related errors."""


class Resolution(Enum):
    """How a single file is resolved by a merge."""

    TAKE_GIVEN = 'take-given'
    KEEP_CURRENT = 'keep-current'
    REMOVE = 'remove'
    CONFLICT = 'conflict'


@dataclass
class MergeResult:
    """Represents the output of a 3-way merge."""

    snapshot: dict[str, HashRef]
    staged: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)

    @property
    def had_conflict(self) -> bool:
        return bool(self.conflicts)


def is_conflict(current: str | None, given: str | None, split: str | None) -> bool:
    """Check whether a file was changed in different ways on the two sides.

    That is: both sides changed it to different contents, or one side changed it and
    the other deleted it, or both created it with different contents."""
    both_diverged = given is not None and split is not None and current not in (given, split) \
        and given != split
    changed_and_deleted = split is not None and split != current and given is None
    created_differently = split is None and given is not None and current != given

    return both_diverged or changed_and_deleted or created_differently


def resolve(current: str | None, given: str | None, split: str | None) -> Resolution:
    """Decide how to merge one file.

    :param current: The file's blob id in the current commit, or None if absent.
    :param given: The file's blob id in the given commit, or None if absent.
    :param split: The file's blob id at the split point, or None if absent.
    :return: The resolution for the file."""
    # Modified (or created) only in the given branch
    if given is not None and split == current and split != given:
        return Resolution.TAKE_GIVEN

    # Modified only in the current branch; covers "absent in current, unmodified in given"
    if split != current and split == given:
        return Resolution.KEEP_CURRENT

    # Changed the same way on both sides, including both deleted
    if given == current and current != split:
        return Resolution.KEEP_CURRENT

    # Created only in the current branch
    if split is None and given is None and current is not None:
        return Resolution.KEEP_CURRENT

    # Unmodified in the current branch, deleted in the given branch
    if split is not None and current == split and given is None:
        return Resolution.REMOVE

    if is_conflict(current, given, split):
        return Resolution.CONFLICT

    return Resolution.KEEP_CURRENT


def conflict_content(current: bytes | None, given: bytes | None) -> bytes:
    """Build the content written for a conflicted file.

    The two versions are concatenated between the markers as they are; a version that
    lacks a trailing newline runs into the following marker. A missing version counts
    as empty."""
    return (CONFLICT_HEAD_MARKER + (current or b'')
            + CONFLICT_SEPARATOR + (given or b'')
            + CONFLICT_END_MARKER)


def merge(store: ObjectStore, work_dir: WorkingDir, stage: Stage,
          current_head: HashRef, given_tip: HashRef, split: HashRef) -> MergeResult:
    """Merge the given commit into the working directory and stage the result.

    Files taken from the given commit and conflicted files are written to the working
    directory and staged for addition; files deleted on the given side are removed and
    staged for removal. The caller is responsible for the fast paths (given tip or
    current head equal to the split point) and for committing the result.

    :param store: The object store holding the commits and blobs.
    :param work_dir: The working directory to write merged files to.
    :param stage: The stage, layered on `current_head` and clear.
    :param current_head: The current commit.
    :param given_tip: The tip of the branch being merged in.
    :param split: The split point of the two commits.
    :return: The merged snapshot, the staged files and the conflicted files.
    :raises MergeError: If the stage is not clear or not layered on the current head."""
    if stage.head != current_head:
        msg = f'Stage is layered on {stage.head}, not on the current head {current_head}'
        raise MergeError(msg)
    if not stage.is_clear():
        msg = 'Cannot merge with uncommitted changes'
        raise MergeError(msg)

    current_files = store.get_commit(current_head).snapshot
    given_files = store.get_commit(given_tip).snapshot
    split_files = store.get_commit(split).snapshot

    result = MergeResult(dict(current_files))

    for filename in sorted(set(current_files) | set(given_files) | set(split_files)):
        current_hash = current_files.get(filename)
        given_hash = given_files.get(filename)
        split_hash = split_files.get(filename)

        resolution = resolve(current_hash, given_hash, split_hash)
        logger.debug('Merging %s: %s', filename, resolution.value)

        match resolution:
            case Resolution.TAKE_GIVEN:
                work_dir.write(filename, store.get(given_hash))
                stage.add(store, work_dir, filename)
                result.snapshot[filename] = given_hash
                result.staged.append(filename)
            case Resolution.REMOVE:
                stage.remove(store, work_dir, filename)
                del result.snapshot[filename]
                result.staged.append(filename)
            case Resolution.CONFLICT:
                current_data = store.get(current_hash) if current_hash else None
                given_data = store.get(given_hash) if given_hash else None
                content = conflict_content(current_data, given_data)
                work_dir.write(filename, content)
                stage.add(store, work_dir, filename)
                result.snapshot[filename] = hash_bytes(content)
                result.staged.append(filename)
                result.conflicts.append(filename)
            case Resolution.KEEP_CURRENT:
                pass

    if result.conflicts:
        logger.info('Merge produced conflicts in %s', ', '.join(result.conflicts))

    return result
