"""libgitlet repository management."""

import json
import logging
import shutil
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from enum import Enum
from functools import wraps
from pathlib import Path
from typing import Any, Concatenate, ParamSpec, TypeVar

from .constants import DEFAULT_BRANCH, DEFAULT_REPO_DIR, OBJECTS_SUBDIR, STATE_FILE
from .history import LogEntry, first_parent_log, split_point
from .merge import MergeResult
from .merge import merge as merge_commits
from .objects import GitletError, HashRef, hash_bytes, initial_commit
from .plumbing import ObjectStore, write_atomic
from .stage import Stage
from .workdir import WorkingDir

logger = logging.getLogger(__name__)

P = ParamSpec('P')
R = TypeVar('R')


class RepositoryError(GitletError):
    """Exception raised for repository-related errors."""


class RepositoryNotFoundError(RepositoryError):
    """Exception raised when a repository is not found."""


class BranchNotFoundError(RepositoryError):
    """Exception raised when a branch does not exist."""


class BranchAlreadyExistsError(RepositoryError):
    """Exception raised when creating a branch whose name is taken."""


class CannotRemoveCurrentBranchError(RepositoryError):
    """Exception raised when removing the checked-out branch."""


class AlreadyOnBranchError(RepositoryError):
    """Exception raised when checking out the current branch."""


class SelfMergeError(RepositoryError):
    """Exception raised when merging a branch into itself."""


class UncommittedChangesError(RepositoryError):
    """Exception raised when merging with staged changes."""


class UntrackedFileConflictError(RepositoryError):
    """Exception raised when an untracked file would be overwritten."""


class FileNotInCommitError(RepositoryError):
    """Exception raised when checking out a file a commit does not track."""


@dataclass
class RepositoryState:
    """The mutable state of a repository: branch table, current branch, HEAD and stage.

    HEAD always equals the current branch's pointer; `point_to` moves both together."""

    branches: dict[str, HashRef]
    current_branch: str
    head: HashRef
    stage: Stage

    def point_to(self, commit_ref: HashRef) -> None:
        """Move the current branch and HEAD to a commit."""
        self.branches[self.current_branch] = commit_ref
        self.head = commit_ref

    def to_dict(self) -> dict[str, Any]:
        return {
            'branches': dict(sorted(self.branches.items())),
            'current_branch': self.current_branch,
            'head': self.head,
            'stage': self.stage.to_dict(),
        }

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> 'RepositoryState':
        branches = {name: HashRef(commit) for name, commit in record['branches'].items()}
        state = cls(branches, record['current_branch'], HashRef(record['head']),
                    Stage.from_dict(record['stage']))
        if state.branches.get(state.current_branch) != state.head:
            msg = f'HEAD {state.head} does not match branch "{state.current_branch}"'
            raise ValueError(msg)

        return state


@dataclass
class Status:
    """A summary of branches, staged changes and working directory changes."""

    branches: list[str]
    current_branch: str
    staged: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)


class MergeKind(Enum):
    """What a merge command ended up doing."""

    ALREADY_MERGED = 'already-merged'
    FAST_FORWARD = 'fast-forward'
    MERGED = 'merged'


@dataclass
class MergeOutcome:
    """Represents the result of merging a branch into the current branch."""

    kind: MergeKind
    head: HashRef
    result: MergeResult | None = None
    commit_ref: HashRef | None = None

    @property
    def had_conflict(self) -> bool:
        return self.result is not None and self.result.had_conflict


class Repository:
    """Represents a libgitlet repository.

    Every command loads the repository state, validates its preconditions before
    touching anything, applies its changes and saves the state again. A command that
    raises leaves the state unchanged."""

    def __init__(self, working_dir: Path | str, repo_dir: Path | str | None = None) -> None:
        """Initialize a Repository instance. The repository is not created on disk until `init()` is called.

        :param working_dir: The working directory where the repository will be located.
        :param repo_dir: The name of the repository directory within the working directory. Defaults to '.gitlet'."""
        self.working_dir = Path(working_dir)

        if repo_dir is None:
            self.repo_dir = Path(DEFAULT_REPO_DIR)
        else:
            self.repo_dir = Path(repo_dir)

    def init(self, default_branch: str = DEFAULT_BRANCH) -> HashRef:
        """Initialize a new repository in the working directory.

        Creates the object store, the root commit and the default branch pointing at it.

        :param default_branch: The name of the default branch to create. Defaults to 'master'.
        :return: The id of the root commit.
        :raises RepositoryError: If the repository already exists."""
        if self.exists():
            msg = f'A repository already exists at {self.repo_path()}'
            raise RepositoryError(msg)

        self.repo_path().mkdir(parents=True)
        store = self.store()
        store.init()

        root_ref = store.put_commit(initial_commit())
        state = RepositoryState({default_branch: root_ref}, default_branch, root_ref, Stage(root_ref))
        self.save_state(state)

        logger.info('Initialized repository at %s', self.repo_path())
        return root_ref

    def exists(self) -> bool:
        """Check if the repository exists in the working directory.

        :return: True if the repository exists, False otherwise."""
        return self.repo_path().exists()

    def repo_path(self) -> Path:
        """Get the path to the repository directory.

        :return: The path to the repository directory."""
        return self.working_dir / self.repo_dir

    def objects_dir(self) -> Path:
        """Get the path to the objects directory within the repository.

        :return: The path to the objects directory."""
        return self.repo_path() / OBJECTS_SUBDIR

    def state_file(self) -> Path:
        """Get the path to the serialized repository state."""
        return self.repo_path() / STATE_FILE

    def store(self) -> ObjectStore:
        return ObjectStore(self.objects_dir())

    def work_dir(self) -> WorkingDir:
        return WorkingDir(self.working_dir)

    @staticmethod
    def requires_repo(func: Callable[Concatenate['Repository', P], R]) -> \
            Callable[Concatenate['Repository', P], R]:
        """Decorate a Repository method to ensure that the repository exists before executing the method.

        :param func: The method to decorate.
        :return: A wrapper function that checks for the repository's existence."""

        @wraps(func)
        def _verify_repo(self: 'Repository', *args: P.args, **kwargs: P.kwargs) -> R:
            if not self.exists():
                msg = f'Repository not initialized at {self.repo_path()}'
                raise RepositoryNotFoundError(msg)

            return func(self, *args, **kwargs)

        return _verify_repo

    @requires_repo
    def load_state(self) -> RepositoryState:
        """Read the repository state from disk.

        :return: The current repository state.
        :raises RepositoryError: If the state file is missing or corrupted.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        try:
            record = json.loads(self.state_file().read_text(encoding='utf-8'))
            return RepositoryState.from_dict(record)
        except (OSError, ValueError, KeyError, TypeError) as e:
            msg = f'Cannot read repository state from {self.state_file()}'
            raise RepositoryError(msg) from e

    def save_state(self, state: RepositoryState) -> None:
        """Write the repository state to disk atomically.

        :param state: The state to save."""
        data = json.dumps(state.to_dict(), indent=2, sort_keys=True).encode('utf-8')
        write_atomic(self.state_file(), data)

    @requires_repo
    def delete_repo(self) -> None:
        """Delete the entire repository, including all objects and state.

        :raises RepositoryNotFoundError: If the repository does not exist."""
        shutil.rmtree(self.repo_path())

    @requires_repo
    def head_commit(self) -> HashRef:
        """Return the id of the commit HEAD points to.

        :raises RepositoryNotFoundError: If the repository does not exist."""
        return self.load_state().head

    @requires_repo
    def current_branch(self) -> str:
        return self.load_state().current_branch

    @requires_repo
    def branches(self) -> dict[str, HashRef]:
        """Get the branch table.

        :return: A mapping from branch name to the commit it points to."""
        return dict(self.load_state().branches)

    @requires_repo
    def add(self, filename: str) -> None:
        """Stage a file for addition.

        :param filename: The name of the file to stage.
        :raises FileNotFoundInWorkdirError: If the file does not exist.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        state = self.load_state()
        state.stage.add(self.store(), self.work_dir(), filename)
        self.save_state(state)

    @requires_repo
    def rm(self, filename: str) -> None:
        """Unstage a file and stage it for removal if it is tracked.

        :param filename: The name of the file to remove.
        :raises NothingToRemoveError: If the file is neither staged nor tracked.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        state = self.load_state()
        state.stage.remove(self.store(), self.work_dir(), filename)
        self.save_state(state)

    @requires_repo
    def commit(self, message: str) -> HashRef:
        """Commit the staged changes on the current branch.

        :param message: The commit message.
        :return: The id of the new commit.
        :raises EmptyMessageError: If the message is blank.
        :raises NothingStagedError: If nothing is staged.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        state = self.load_state()
        commit_ref = state.stage.build_commit(self.store(), self.work_dir(), message)
        state.point_to(commit_ref)
        self.save_state(state)

        return commit_ref

    @requires_repo
    def log(self, tip: HashRef | None = None) -> Generator[LogEntry, None, None]:
        """Generate a log of commits, following first parents from the tip.

        :param tip: The commit to start from. If None, defaults to HEAD.
        :return: A generator yielding LogEntry objects from the tip to the root.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        yield from first_parent_log(self.store(), tip or self.load_state().head)

    @requires_repo
    def global_log(self) -> list[LogEntry]:
        """List every commit ever made, newest first."""
        store = self.store()
        entries = [LogEntry(commit_ref, store.get_commit(commit_ref)) for commit_ref in store.commits()]
        entries.sort(key=lambda entry: (entry.commit.timestamp, entry.commit_ref), reverse=True)
        return entries

    @requires_repo
    def find(self, message: str) -> list[HashRef]:
        """Find the ids of all commits with exactly the given message."""
        return [entry.commit_ref for entry in self.global_log() if entry.commit.message == message]

    @requires_repo
    def status(self) -> Status:
        """Summarize the branches, the stage and the working directory."""
        state = self.load_state()
        store = self.store()
        work_dir = self.work_dir()

        return Status(sorted(state.branches),
                      state.current_branch,
                      state.stage.staged_for_addition(),
                      state.stage.staged_for_removal(),
                      state.stage.modified_not_staged(store, work_dir),
                      state.stage.untracked_files(store, work_dir.files()))

    @requires_repo
    def resolve_commit(self, commit_id: str) -> HashRef:
        """Expand a possibly abbreviated commit id.

        :raises NoCommitWithIdError: If no commit matches.
        :raises AmbiguousCommitIdError: If several commits match."""
        return self.store().resolve_commit(commit_id)

    @requires_repo
    def checkout_file(self, filename: str, commit_id: str | None = None) -> None:
        """Restore a file in the working directory to its version in a commit.

        The stage is not changed.

        :param filename: The name of the file to restore.
        :param commit_id: A possibly abbreviated commit id. If None, defaults to HEAD.
        :raises NoCommitWithIdError: If no commit matches the id.
        :raises AmbiguousCommitIdError: If several commits match the id.
        :raises InvalidFilenameError: If the name is not a plain file name.
        :raises FileNotInCommitError: If the commit does not track the file."""
        store = self.store()
        work_dir = self.work_dir()
        work_dir.file_path(filename)

        commit_ref = self.resolve_commit(commit_id) if commit_id else self.load_state().head
        blob_hash = store.get_commit(commit_ref).blob(filename)
        if blob_hash is None:
            msg = 'File does not exist in that commit.'
            raise FileNotInCommitError(msg)

        work_dir.write(filename, store.get(blob_hash))

    @requires_repo
    def checkout_branch(self, branch: str) -> None:
        """Switch to a branch, replacing the working directory with its files.

        :param branch: The name of the branch to check out.
        :raises BranchNotFoundError: If the branch does not exist.
        :raises AlreadyOnBranchError: If the branch is the current branch.
        :raises UntrackedFileConflictError: If an untracked file is in the way."""
        state = self.load_state()
        if branch not in state.branches:
            msg = 'No such branch exists.'
            raise BranchNotFoundError(msg)
        if branch == state.current_branch:
            msg = 'No need to checkout the current branch.'
            raise AlreadyOnBranchError(msg)
        self._check_untracked(state)

        target = state.branches[branch]
        self._materialize(state, target)
        state.current_branch = branch
        state.head = target
        state.stage.reset_to(target)
        self.save_state(state)

        logger.info('Switched to branch %s at %s', branch, target)

    @requires_repo
    def branch(self, branch: str) -> None:
        """Create a branch pointing at HEAD. HEAD stays on the current branch.

        :param branch: The name of the branch to create.
        :raises ValueError: If the branch name is empty.
        :raises BranchAlreadyExistsError: If the branch already exists."""
        if not branch:
            msg = 'Branch name is required'
            raise ValueError(msg)

        state = self.load_state()
        if branch in state.branches:
            msg = 'A branch with that name already exists.'
            raise BranchAlreadyExistsError(msg)

        state.branches[branch] = state.head
        self.save_state(state)

    @requires_repo
    def rm_branch(self, branch: str) -> None:
        """Delete a branch pointer. Its commits are kept.

        :param branch: The name of the branch to delete.
        :raises BranchNotFoundError: If the branch does not exist.
        :raises CannotRemoveCurrentBranchError: If the branch is checked out."""
        state = self.load_state()
        if branch not in state.branches:
            msg = 'A branch with that name does not exist.'
            raise BranchNotFoundError(msg)
        if branch == state.current_branch:
            msg = 'Cannot remove the current branch.'
            raise CannotRemoveCurrentBranchError(msg)

        del state.branches[branch]
        self.save_state(state)

    @requires_repo
    def reset(self, commit_id: str) -> HashRef:
        """Move the current branch to a commit and check out its files.

        :param commit_id: A possibly abbreviated commit id.
        :return: The full id of the commit.
        :raises NoCommitWithIdError: If no commit matches the id.
        :raises AmbiguousCommitIdError: If several commits match the id.
        :raises UntrackedFileConflictError: If an untracked file is in the way."""
        state = self.load_state()
        target = self.resolve_commit(commit_id)
        self._check_untracked(state)

        self._materialize(state, target)
        state.point_to(target)
        state.stage.reset_to(target)
        self.save_state(state)

        logger.info('Reset %s to %s', state.current_branch, target)
        return target

    @requires_repo
    def merge(self, branch: str) -> MergeOutcome:
        """Merge a branch into the current branch.

        If the given branch is an ancestor of HEAD nothing happens; if HEAD is an ancestor
        of the given branch the current branch is fast-forwarded. Otherwise the three-way
        merge result is committed as "Merged <branch> into <current>." Conflicts are
        committed with conflict markers and reported in the outcome.

        :param branch: The name of the branch to merge in.
        :return: What the merge did.
        :raises UntrackedFileConflictError: If an untracked file is in the way.
        :raises UncommittedChangesError: If changes are staged.
        :raises BranchNotFoundError: If the branch does not exist.
        :raises SelfMergeError: If the branch is the current branch."""
        state = self.load_state()
        store = self.store()
        work_dir = self.work_dir()

        self._check_untracked(state)
        if not state.stage.is_clear():
            msg = 'You have uncommitted changes.'
            raise UncommittedChangesError(msg)
        if branch not in state.branches:
            msg = 'A branch with that name does not exist.'
            raise BranchNotFoundError(msg)
        if branch == state.current_branch:
            msg = 'Cannot merge a branch with itself.'
            raise SelfMergeError(msg)

        current_head = state.head
        given_tip = state.branches[branch]
        split = split_point(store, current_head, given_tip)
        logger.debug('Split point of %s and %s is %s', current_head, given_tip, split)

        if given_tip == split:
            return MergeOutcome(MergeKind.ALREADY_MERGED, current_head)

        if current_head == split:
            self._materialize(state, given_tip)
            state.point_to(given_tip)
            state.stage.reset_to(given_tip)
            self.save_state(state)
            logger.info('Fast-forwarded %s to %s', state.current_branch, given_tip)
            return MergeOutcome(MergeKind.FAST_FORWARD, given_tip)

        result = merge_commits(store, work_dir, state.stage, current_head, given_tip, split)

        commit_ref = None
        if not state.stage.is_clear():
            message = f'Merged {branch} into {state.current_branch}.'
            commit_ref = state.stage.build_commit(store, work_dir, message, given_tip, current_head)
            state.point_to(commit_ref)
        self.save_state(state)

        return MergeOutcome(MergeKind.MERGED, state.head, result, commit_ref)

    def _check_untracked(self, state: RepositoryState) -> None:
        working_files = self.work_dir().files()
        if state.stage.has_untracked_conflict(self.store(), working_files):
            logger.debug('Untracked files: %s', ', '.join(state.stage.untracked_files(self.store(), working_files)))
            msg = 'There is an untracked file in the way; delete it, or add and commit it first.'
            raise UntrackedFileConflictError(msg)

    def _materialize(self, state: RepositoryState, target_ref: HashRef) -> None:
        # Write the target's files and delete files HEAD or the stage knows about that the
        # target does not track.
        store = self.store()
        work_dir = self.work_dir()
        target = store.get_commit(target_ref)
        head = store.get_commit(state.head)

        for filename, blob_hash in target.snapshot.items():
            if work_dir.exists(filename) and hash_bytes(work_dir.read(filename)) == blob_hash:
                continue
            work_dir.write(filename, store.get(blob_hash))

        for filename in work_dir.files():
            if target.tracks(filename):
                continue
            if head.tracks(filename) or filename in state.stage.additions:
                work_dir.delete(filename)
