from collections.abc import Callable
from pathlib import Path

from libgitlet import Commit, HashRef, ObjectStore, Repository, Stage, WorkingDir, initial_commit
from pytest import fixture

CommitFactory = Callable[..., HashRef]


@fixture
def temp_repo_dir(tmp_path: Path) -> Path:
    working_dir = tmp_path / 'work'
    working_dir.mkdir()
    return working_dir


@fixture
def temp_repo(temp_repo_dir: Path) -> Repository:
    repo = Repository(temp_repo_dir)
    repo.init()
    return repo


@fixture
def store(tmp_path: Path) -> ObjectStore:
    object_store = ObjectStore(tmp_path / 'objects')
    object_store.init()
    return object_store


@fixture
def work_dir(temp_repo_dir: Path) -> WorkingDir:
    return WorkingDir(temp_repo_dir)


@fixture
def root_ref(store: ObjectStore) -> HashRef:
    return store.put_commit(initial_commit())


@fixture
def stage(root_ref: HashRef) -> Stage:
    return Stage(root_ref)


@fixture
def make_commit(store: ObjectStore) -> CommitFactory:
    """Save a commit whose snapshot holds the given file contents, bypassing the stage."""
    counter = iter(range(1, 1_000_000))

    def _make_commit(parent: HashRef | None, files: dict[str, str] | None = None, message: str | None = None,
                     merge_parent: HashRef | None = None) -> HashRef:
        timestamp = next(counter)
        snapshot = {name: store.put(content.encode()) for name, content in (files or {}).items()}
        commit = Commit(message or f'commit {timestamp}', timestamp, parent, merge_parent, snapshot)
        return store.put_commit(commit)

    return _make_commit
