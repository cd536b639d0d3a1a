import hashlib

from libgitlet import (AmbiguousCommitIdError, Commit, CorruptObjectError, HashRef, NoCommitWithIdError,
                       ObjectNotFoundError, ObjectStore, hash_bytes, hash_object, initial_commit)
from libgitlet.constants import HASH_LENGTH, INITIAL_COMMIT_MESSAGE, ROOT_TIMESTAMP
from libgitlet.plumbing import get_content_path
from pytest import raises


def test_put_returns_sha1_of_content(store: ObjectStore) -> None:
    data = b'hello world\n'

    blob_hash = store.put(data)

    assert blob_hash == hashlib.sha1(data).hexdigest()
    assert len(blob_hash) == HASH_LENGTH
    assert get_content_path(store.blobs_dir(), blob_hash).exists()


def test_put_is_idempotent(store: ObjectStore) -> None:
    first = store.put(b'same content')
    second = store.put(b'same content')

    assert first == second
    assert len(list(get_content_path(store.blobs_dir(), first).parent.iterdir())) == 1


def test_get_returns_stored_bytes(store: ObjectStore) -> None:
    data = bytes(range(256))

    assert store.get(store.put(data)) == data


def test_put_empty_blob(store: ObjectStore) -> None:
    assert store.get(store.put(b'')) == b''


def test_get_missing_blob_raises_error(store: ObjectStore) -> None:
    with raises(ObjectNotFoundError):
        store.get('a' * HASH_LENGTH)

    with raises(ObjectNotFoundError):
        store.get('not-a-hash')


def test_exists(store: ObjectStore) -> None:
    blob_hash = store.put(b'content')

    assert store.exists(blob_hash)
    assert not store.exists('b' * HASH_LENGTH)
    assert not store.exists('../escape')


def test_put_commit_derives_id_from_content(store: ObjectStore) -> None:
    commit = Commit('message', 1234, None, None, {'a.txt': store.put(b'a')})

    commit_ref = store.put_commit(commit)

    assert commit_ref == hash_object(commit)
    assert commit_ref == hash_bytes(commit.serialize())
    assert store.get_commit(commit_ref) == commit


def test_get_commit_is_stable(store: ObjectStore) -> None:
    commit_ref = store.put_commit(Commit('stable', 42, None, None, {'f': store.put(b'f')}))

    first = store.get_commit(commit_ref)
    second = store.get_commit(commit_ref)

    assert first == second
    assert first.serialize() == second.serialize()
    assert hash_object(first) == commit_ref


def test_commit_serialization_ignores_snapshot_order(store: ObjectStore) -> None:
    a, b = store.put(b'a'), store.put(b'b')

    first = Commit('m', 1, None, None, {'a': a, 'b': b})
    second = Commit('m', 1, None, None, {'b': b, 'a': a})

    assert hash_object(first) == hash_object(second)


def test_commit_preserves_parent_links(store: ObjectStore) -> None:
    root_ref = store.put_commit(initial_commit())
    other_ref = store.put_commit(Commit('other', 5, root_ref))
    merge_ref = store.put_commit(Commit('merge', 10, root_ref, other_ref))

    merge_commit = store.get_commit(merge_ref)

    assert merge_commit.parent == root_ref
    assert merge_commit.merge_parent == other_ref
    assert merge_commit.is_merge
    assert not merge_commit.is_root


def test_initial_commit_is_deterministic(store: ObjectStore, tmp_path) -> None:
    other_store = ObjectStore(tmp_path / 'other-objects')
    other_store.init()

    root_ref = store.put_commit(initial_commit())

    assert root_ref == other_store.put_commit(initial_commit())
    root = store.get_commit(root_ref)
    assert root.message == INITIAL_COMMIT_MESSAGE
    assert root.timestamp == ROOT_TIMESTAMP
    assert root.parent is None
    assert root.snapshot == {}


def test_get_missing_commit_raises_error(store: ObjectStore) -> None:
    with raises(ObjectNotFoundError):
        store.get_commit('c' * HASH_LENGTH)


def test_get_corrupted_commit_raises_error(store: ObjectStore) -> None:
    commit_ref = store.put_commit(Commit('to corrupt', 1))
    get_content_path(store.commits_dir(), commit_ref).write_bytes(b'{not json')

    with raises(CorruptObjectError):
        store.get_commit(commit_ref)


def test_blobs_and_commits_are_stored_apart(store: ObjectStore) -> None:
    commit = Commit('m', 1)
    commit_ref = store.put_commit(commit)

    with raises(ObjectNotFoundError):
        store.get(commit_ref)


def test_commits_lists_every_commit(store: ObjectStore) -> None:
    refs = {store.put_commit(Commit(f'commit {i}', i)) for i in range(5)}

    assert set(store.commits()) == refs


def test_resolve_commit_full_and_abbreviated(store: ObjectStore) -> None:
    commit_ref = store.put_commit(Commit('only', 1))

    assert store.resolve_commit(commit_ref) == commit_ref
    assert store.resolve_commit(commit_ref[:7]) == commit_ref
    assert store.resolve_commit(commit_ref[:7].upper()) == commit_ref


def test_resolve_commit_unknown_raises_error(store: ObjectStore) -> None:
    store.put_commit(Commit('only', 1))

    with raises(NoCommitWithIdError):
        store.resolve_commit('f' * HASH_LENGTH)

    with raises(NoCommitWithIdError):
        store.resolve_commit('')

    with raises(NoCommitWithIdError):
        store.resolve_commit('xyz')


def test_resolve_commit_ambiguous_prefix_raises_error(store: ObjectStore) -> None:
    # 17 commits guarantee two ids sharing their first hex digit.
    refs = [store.put_commit(Commit(f'commit {i}', i)) for i in range(17)]
    prefix = next(ref[0] for ref in refs if sum(other[0] == ref[0] for other in refs) > 1)

    with raises(AmbiguousCommitIdError):
        store.resolve_commit(prefix)


def test_hash_ref_rejects_invalid_values() -> None:
    for value in ['', 'abc', 'g' * HASH_LENGTH, 'A' * HASH_LENGTH]:
        with raises(ValueError):
            HashRef(value)


def test_put_many_distinct_blobs(store: ObjectStore) -> None:
    hashes = {store.put(f'blob {i}'.encode()) for i in range(50)}

    assert len(hashes) == 50
