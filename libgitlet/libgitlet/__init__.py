"""libgitlet: a local, single-user version-control engine."""

from .history import (HistoryError, InvalidDistanceError, LogEntry, NoSuchAncestorError, distance_to_root,
                      first_parent_log, kth_ancestor, split_point)
from .merge import MergeError, MergeResult, Resolution, conflict_content, merge, resolve
from .objects import Commit, CorruptObjectError, GitletError, HashRef, hash_bytes, hash_object, initial_commit
from .plumbing import AmbiguousCommitIdError, NoCommitWithIdError, ObjectNotFoundError, ObjectStore
from .repository import (AlreadyOnBranchError, BranchAlreadyExistsError, BranchNotFoundError,
                         CannotRemoveCurrentBranchError, FileNotInCommitError, MergeKind, MergeOutcome, Repository,
                         RepositoryError, RepositoryNotFoundError, RepositoryState, SelfMergeError, Status,
                         UncommittedChangesError, UntrackedFileConflictError)
from .stage import EmptyMessageError, NothingStagedError, NothingToRemoveError, Stage, StageError
from .workdir import (EmptyFilenameError, FileNotFoundInWorkdirError, InvalidFilenameError, IsDirectoryError,
                      WorkdirError, WorkingDir)

__all__ = [
    'AlreadyOnBranchError', 'AmbiguousCommitIdError', 'BranchAlreadyExistsError', 'BranchNotFoundError',
    'CannotRemoveCurrentBranchError', 'Commit', 'CorruptObjectError', 'EmptyFilenameError', 'EmptyMessageError',
    'FileNotFoundInWorkdirError', 'FileNotInCommitError', 'GitletError', 'HashRef', 'HistoryError',
    'InvalidDistanceError', 'InvalidFilenameError', 'IsDirectoryError', 'LogEntry', 'MergeError', 'MergeKind',
    'MergeOutcome', 'MergeResult', 'NoCommitWithIdError', 'NoSuchAncestorError', 'NothingStagedError',
    'NothingToRemoveError', 'ObjectNotFoundError', 'ObjectStore', 'Repository', 'RepositoryError',
    'RepositoryNotFoundError', 'RepositoryState', 'Resolution', 'SelfMergeError', 'Stage', 'StageError', 'Status',
    'UncommittedChangesError', 'UntrackedFileConflictError', 'WorkdirError', 'WorkingDir', 'conflict_content',
    'distance_to_root', 'first_parent_log', 'hash_bytes', 'hash_object', 'initial_commit', 'kth_ancestor',
    'merge', 'resolve', 'split_point',
]
