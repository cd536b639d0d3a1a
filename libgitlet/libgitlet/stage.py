"""The staging index: pending changes layered on top of the HEAD commit."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .objects import Commit, GitletError, HashRef, hash_bytes
from .plumbing import ObjectStore
from .workdir import WorkingDir

logger = logging.getLogger(__name__)


class StageError(GitletError):
    """Exception raised for staging and commit errors."""


class EmptyMessageError(StageError):
    """Exception raised when a commit message is blank."""


class NothingStagedError(StageError):
    """Exception raised when committing with nothing staged."""


class NothingToRemoveError(StageError):
    """Raised when removing a file that is neither staged nor tracked.

    This is informational: nothing was changed, so the surrounding command may proceed."""


@dataclass
class Stage:
    """Files staged for addition and removal relative to the `head` commit.

    A file name is never staged for both addition and removal at the same time."""

    head: HashRef
    additions: dict[str, HashRef] = field(default_factory=dict)
    removals: set[str] = field(default_factory=set)

    def is_clear(self) -> bool:
        return not self.additions and not self.removals

    def clear(self) -> None:
        self.additions.clear()
        self.removals.clear()

    def reset_to(self, head: HashRef) -> None:
        """Drop every staged change and layer the stage on another commit."""
        self.clear()
        self.head = head

    def staged_for_addition(self) -> list[str]:
        return sorted(self.additions)

    def staged_for_removal(self) -> list[str]:
        return sorted(self.removals)

    def head_commit(self, store: ObjectStore) -> Commit:
        return store.get_commit(self.head)

    def add(self, store: ObjectStore, work_dir: WorkingDir, filename: str) -> None:
        """Stage the current content of a file for addition.

        A file whose content matches the HEAD version is not staged, and any stale staged
        version of it is dropped. The file is no longer staged for removal either way.
        Nothing is written to the store until commit time.

        :param store: The object store holding the HEAD commit.
        :param work_dir: The working directory the file lives in.
        :param filename: The name of the file to stage.
        :raises EmptyFilenameError: If the file name is empty.
        :raises InvalidFilenameError: If the name is not a plain file name.
        :raises IsDirectoryError: If the name refers to a directory.
        :raises FileNotFoundInWorkdirError: If the file does not exist."""
        blob_hash = hash_bytes(work_dir.read(filename))
        head_hash = self.head_commit(store).blob(filename)

        if head_hash != blob_hash:
            self.additions[filename] = blob_hash
            logger.debug('Staged %s for addition as %s', filename, blob_hash)
        elif self.additions.pop(filename, None) is not None:
            logger.debug('Unstaged %s, it matches HEAD again', filename)

        self.removals.discard(filename)

    def remove(self, store: ObjectStore, work_dir: WorkingDir, filename: str) -> None:
        """Unstage a file and, if HEAD tracks it, stage it for removal.

        A tracked file is also deleted from the working directory.

        :param store: The object store holding the HEAD commit.
        :param work_dir: The working directory the file lives in.
        :param filename: The name of the file to remove.
        :raises EmptyFilenameError: If the file name is empty.
        :raises InvalidFilenameError: If the name is not a plain file name.
        :raises IsDirectoryError: If the name refers to a directory.
        :raises NothingToRemoveError: If the file is neither staged nor tracked."""
        work_dir.file_path(filename)

        was_staged = self.additions.pop(filename, None) is not None
        tracked = self.head_commit(store).tracks(filename)

        if tracked:
            self.removals.add(filename)
            work_dir.delete(filename)
            logger.debug('Staged %s for removal', filename)
        elif not was_staged:
            msg = 'No reason to remove the file.'
            raise NothingToRemoveError(msg)

    def build_commit(self, store: ObjectStore, work_dir: WorkingDir, message: str,
                     parent1: HashRef | None = None, parent2: HashRef | None = None,
                     timestamp: int | None = None) -> HashRef:
        """Create a commit from the HEAD snapshot and the staged changes.

        Staged files are read again from the working directory, so a file edited between
        staging and committing is committed with its newest content. On success the new
        commit becomes the stage's head and the stage is cleared.

        :param store: The object store to save blobs and the commit to.
        :param work_dir: The working directory holding the staged files.
        :param message: The commit message.
        :param parent1: For merge commits, the tip of the merged-in branch.
        :param parent2: For merge commits, the current head; must equal `head`.
        :param timestamp: The commit time in seconds; defaults to now.
        :return: The id of the new commit.
        :raises EmptyMessageError: If the message is blank.
        :raises NothingStagedError: If no changes are staged.
        :raises FileNotFoundInWorkdirError: If a staged file was deleted before commit."""
        if not message or not message.strip():
            msg = 'Please enter a commit message.'
            raise EmptyMessageError(msg)
        if self.is_clear():
            msg = 'No changes added to the commit.'
            raise NothingStagedError(msg)
        if parent2 is not None and parent2 != self.head:
            msg = f'Second merge parent {parent2} is not the current head {self.head}'
            raise ValueError(msg)

        # Read every staged file before writing anything, so a vanished file leaves the
        # store and the stage untouched.
        contents = {filename: work_dir.read(filename) for filename in sorted(self.additions)}

        snapshot = dict(self.head_commit(store).snapshot)
        for filename, data in contents.items():
            snapshot[filename] = store.put(data)
        for filename in self.removals:
            snapshot.pop(filename, None)

        if timestamp is None:
            timestamp = int(datetime.now().timestamp())

        commit = Commit(message, timestamp, self.head, parent1, snapshot)
        commit_ref = store.put_commit(commit)
        logger.info('Created commit %s (%d files)', commit_ref, len(snapshot))

        self.reset_to(commit_ref)
        return commit_ref

    def untracked_files(self, store: ObjectStore, working_files: Iterable[str]) -> list[str]:
        """List working files that are neither staged for addition nor tracked by HEAD."""
        head = self.head_commit(store)
        return sorted(filename for filename in working_files
                      if filename not in self.additions and not head.tracks(filename))

    def has_untracked_conflict(self, store: ObjectStore, working_files: Iterable[str]) -> bool:
        """Check whether an untracked file could be clobbered by checkout, reset or merge.

        Callers must abort the enclosing operation when this returns True."""
        return bool(self.untracked_files(store, working_files))

    def modified_not_staged(self, store: ObjectStore, work_dir: WorkingDir) -> list[str]:
        """Describe working directory changes that are not staged.

        :return: Sorted entries of the form `<name> (modified)` or `<name> (deleted)`."""
        head = self.head_commit(store)
        working_files = set(work_dir.files())
        changes: list[str] = []

        for filename, blob_hash in head.snapshot.items():
            if filename in self.additions or filename in self.removals:
                continue
            if filename not in working_files:
                changes.append(f'{filename} (deleted)')
            elif hash_bytes(work_dir.read(filename)) != blob_hash:
                changes.append(f'{filename} (modified)')

        for filename, blob_hash in self.additions.items():
            if filename not in working_files:
                changes.append(f'{filename} (deleted)')
            elif hash_bytes(work_dir.read(filename)) != blob_hash:
                changes.append(f'{filename} (modified)')

        return sorted(changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            'head': self.head,
            'additions': dict(sorted(self.additions.items())),
            'removals': sorted(self.removals),
        }

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> 'Stage':
        return cls(HashRef(record['head']),
                   {name: HashRef(blob) for name, blob in record.get('additions', {}).items()},
                   set(record.get('removals', [])))
