"""Ancestry queries over the commit graph.

Commits are navigated by id through the object store. Every query follows the primary
`parent` link only; the `merge_parent` link is consulted solely by the merge-aware
shortcut of `split_point`."""

from collections.abc import Iterator
from dataclasses import dataclass

from .objects import Commit, GitletError, HashRef
from .plumbing import ObjectStore


class HistoryError(GitletError):
    """Exception raised for invalid ancestry queries."""


class InvalidDistanceError(HistoryError):
    """Exception raised when a negative ancestor distance is requested."""


class NoSuchAncestorError(HistoryError):
    """Exception raised when the root is reached before the requested ancestor."""


@dataclass
class LogEntry:
    """A class representing a log entry for a branch or commit history."""

    commit_ref: HashRef
    commit: Commit


def first_parent_log(store: ObjectStore, tip: HashRef) -> Iterator[LogEntry]:
    """Walk from a commit to the root along primary parents.

    :param store: The object store holding the commits.
    :param tip: The commit to start from.
    :return: A generator yielding the tip first and the root last."""
    current_hash: HashRef | None = tip
    while current_hash:
        commit = store.get_commit(current_hash)
        yield LogEntry(current_hash, commit)
        current_hash = commit.parent


def distance_to_root(store: ObjectStore, commit_ref: HashRef) -> int:
    """Count the primary-parent steps from a commit to the root.

    For merge commits this is the length of the first-parent lineage, not the longest
    or shortest path in the graph."""
    distance = 0
    commit = store.get_commit(commit_ref)
    while commit.parent is not None:
        commit = store.get_commit(commit.parent)
        distance += 1

    return distance


def kth_ancestor(store: ObjectStore, commit_ref: HashRef, k: int) -> HashRef:
    """Find the commit `k` primary-parent steps behind a commit.

    :param store: The object store holding the commits.
    :param commit_ref: The commit to start from.
    :param k: The number of steps; 0 returns the commit itself.
    :return: The id of the ancestor.
    :raises InvalidDistanceError: If k is negative.
    :raises NoSuchAncestorError: If the root is reached before k steps."""
    if k < 0:
        msg = f'Ancestor distance must not be negative, got {k}'
        raise InvalidDistanceError(msg)

    current = commit_ref
    for step in range(k):
        parent = store.get_commit(current).parent
        if parent is None:
            msg = f'Commit {commit_ref} has only {step} ancestors, {k} requested'
            raise NoSuchAncestorError(msg)
        current = parent

    return current


def _merge_shortcut(store: ObjectStore, a: HashRef, b: HashRef) -> HashRef | None:
    # Find a merge parent recorded on a's lineage that also lies on b's lineage.
    b_lineage: list[HashRef] | None = None
    for entry in first_parent_log(store, a):
        merge_parent = entry.commit.merge_parent
        if merge_parent is None:
            continue

        if b_lineage is None:
            b_lineage = [e.commit_ref for e in first_parent_log(store, b)]
        if merge_parent in b_lineage:
            return merge_parent

    return None


def split_point(store: ObjectStore, a: HashRef, b: HashRef) -> HashRef:
    """Find the commit two histories split from.

    First, if a merge commit on a's primary lineage recorded a merge parent that lies on
    b's primary lineage, that merge parent is returned. Otherwise the commit farther from
    the root is walked back until both are equidistant, then both are walked back in
    lockstep until they meet.

    This is an approximation of the merge base, not a general lowest common ancestor:
    with several interleaved merges it may return an older common ancestor.

    :param store: The object store holding the commits.
    :param a: The first commit (usually the current head).
    :param b: The second commit (usually the tip of the branch being merged).
    :return: The id of the split point."""
    shortcut = _merge_shortcut(store, a, b)
    if shortcut is not None:
        return shortcut

    distance_a = distance_to_root(store, a)
    distance_b = distance_to_root(store, b)
    if distance_a > distance_b:
        a = kth_ancestor(store, a, distance_a - distance_b)
    elif distance_b > distance_a:
        b = kth_ancestor(store, b, distance_b - distance_a)

    # Every history shares the fixed root commit, so the walk always terminates.
    while a != b:
        a = kth_ancestor(store, a, 1)
        b = kth_ancestor(store, b, 1)

    return a
