from collections.abc import Callable

from libgitlet import (HashRef, InvalidDistanceError, NoSuchAncestorError, ObjectStore, distance_to_root,
                       first_parent_log, kth_ancestor, split_point)
from pytest import raises

CommitFactory = Callable[..., HashRef]


def _linear_chain(root_ref: HashRef, make_commit: CommitFactory, length: int) -> list[HashRef]:
    chain = [root_ref]
    for i in range(1, length):
        chain.append(make_commit(chain[-1], {'f.txt': f'version {i}'}))
    return chain


def test_distance_to_root_of_root_is_zero(store: ObjectStore, root_ref: HashRef) -> None:
    assert distance_to_root(store, root_ref) == 0


def test_distance_to_root_linear_chain(store: ObjectStore, root_ref: HashRef, make_commit: CommitFactory) -> None:
    chain = _linear_chain(root_ref, make_commit, 6)

    assert distance_to_root(store, chain[-1]) == 5
    assert [distance_to_root(store, ref) for ref in chain] == list(range(6))


def test_distance_to_root_ignores_merge_parent(store: ObjectStore, root_ref: HashRef,
                                               make_commit: CommitFactory) -> None:
    long_side = _linear_chain(root_ref, make_commit, 5)
    merge_ref = make_commit(root_ref, {'m': 'merged'}, merge_parent=long_side[-1])

    assert distance_to_root(store, merge_ref) == 1


def test_kth_ancestor(store: ObjectStore, root_ref: HashRef, make_commit: CommitFactory) -> None:
    chain = _linear_chain(root_ref, make_commit, 5)
    tip = chain[-1]

    assert kth_ancestor(store, tip, 0) == tip
    assert kth_ancestor(store, tip, 1) == chain[-2]
    assert kth_ancestor(store, tip, 4) == root_ref


def test_kth_ancestor_past_root_raises_error(store: ObjectStore, root_ref: HashRef,
                                             make_commit: CommitFactory) -> None:
    chain = _linear_chain(root_ref, make_commit, 5)

    with raises(NoSuchAncestorError):
        kth_ancestor(store, chain[-1], 5)


def test_kth_ancestor_negative_distance_raises_error(store: ObjectStore, root_ref: HashRef) -> None:
    with raises(InvalidDistanceError):
        kth_ancestor(store, root_ref, -1)


def test_first_parent_log_order(store: ObjectStore, root_ref: HashRef, make_commit: CommitFactory) -> None:
    chain = _linear_chain(root_ref, make_commit, 4)

    assert [entry.commit_ref for entry in first_parent_log(store, chain[-1])] == list(reversed(chain))


def test_split_point_same_commit(store: ObjectStore, root_ref: HashRef, make_commit: CommitFactory) -> None:
    tip = make_commit(root_ref, {'a': 'a'})

    assert split_point(store, tip, tip) == tip


def test_split_point_ancestor(store: ObjectStore, root_ref: HashRef, make_commit: CommitFactory) -> None:
    chain = _linear_chain(root_ref, make_commit, 4)

    assert split_point(store, chain[-1], chain[1]) == chain[1]
    assert split_point(store, chain[1], chain[-1]) == chain[1]


def test_split_point_diverged_branches(store: ObjectStore, root_ref: HashRef, make_commit: CommitFactory) -> None:
    base = make_commit(root_ref, {'f': 'base'})
    ours = make_commit(make_commit(base, {'f': 'ours 1'}), {'f': 'ours 2'})
    theirs = make_commit(make_commit(make_commit(base, {'f': 't1'}), {'f': 't2'}), {'f': 't3'})

    assert split_point(store, ours, theirs) == base
    assert split_point(store, theirs, ours) == base


def test_split_point_unrelated_histories_meet_at_root(store: ObjectStore, root_ref: HashRef,
                                                      make_commit: CommitFactory) -> None:
    ours = make_commit(root_ref, {'a': 'a'})
    theirs = make_commit(root_ref, {'b': 'b'})

    assert split_point(store, ours, theirs) == root_ref


def test_split_point_uses_recorded_merge_parent(store: ObjectStore, root_ref: HashRef,
                                                make_commit: CommitFactory) -> None:
    base = make_commit(root_ref, {'f': 'base'})
    branch_1 = make_commit(base, {'f': 'base', 'g': 'branch 1'})
    master_1 = make_commit(base, {'f': 'master 1'})
    merged = make_commit(master_1, {'f': 'master 1', 'g': 'branch 1'}, merge_parent=branch_1)
    branch_2 = make_commit(branch_1, {'f': 'base', 'g': 'branch 2'})

    # Equal distances would converge on `base`; the merge record points at branch_1.
    assert distance_to_root(store, merged) == distance_to_root(store, branch_2)
    assert split_point(store, merged, branch_2) == branch_1


def test_split_point_merge_parent_is_given_tip(store: ObjectStore, root_ref: HashRef,
                                               make_commit: CommitFactory) -> None:
    base = make_commit(root_ref, {'f': 'base'})
    branch_1 = make_commit(base, {'g': 'branch'})
    master_1 = make_commit(base, {'f': 'master'})
    merged = make_commit(master_1, {'f': 'master', 'g': 'branch'}, merge_parent=branch_1)

    assert split_point(store, merged, branch_1) == branch_1


def test_split_point_only_follows_primary_lineage_of_other_side(store: ObjectStore, root_ref: HashRef,
                                                                make_commit: CommitFactory) -> None:
    base = make_commit(root_ref, {'f': 'base'})
    side = make_commit(base, {'f': 'side'})
    ours = make_commit(base, {'f': 'ours'})
    # The merge parent of `theirs` is not on our lineage and is never consulted.
    theirs = make_commit(make_commit(base, {'f': 'theirs'}), {'f': 'theirs 2'}, merge_parent=side)

    assert split_point(store, ours, theirs) == base
