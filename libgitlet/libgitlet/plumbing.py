"""Content-addressed storage for blobs and commits."""

import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from .constants import BLOBS_SUBDIR, COMMITS_SUBDIR, HASH_CHARSET, HASH_LENGTH
from .objects import Commit, GitletError, HashRef, hash_bytes, hash_object, is_hash

logger = logging.getLogger(__name__)


class ObjectNotFoundError(GitletError):
    """Exception raised when an object id is not present in the store."""


class NoCommitWithIdError(ObjectNotFoundError):
    """Exception raised when no commit matches an (abbreviated) commit id."""


class AmbiguousCommitIdError(GitletError):
    """Exception raised when an abbreviated commit id matches more than one commit."""


def get_content_path(root: Path, content_hash: str) -> Path:
    """Get the path of an object inside a store directory.

    :param root: The store directory.
    :param content_hash: The object's id.
    :return: The path `<root>/<id[:2]>/<id>`."""
    return root / content_hash[:2] / content_hash


def write_atomic(path: Path, data: bytes) -> None:
    """Write data to a path so that readers see either the old file or the complete new one."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix='.tmp-')
    try:
        with os.fdopen(fd, 'wb') as handle:
            handle.write(data)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


class ObjectStore:
    """An append-only store of blobs and commits keyed by content digest.

    Objects are never deleted or rewritten: putting content that is already present
    is a no-op that returns the same id."""

    def __init__(self, objects_dir: Path | str) -> None:
        """Initialize a store rooted at the given directory.

        :param objects_dir: The directory holding the blob and commit stores."""
        self.objects_dir = Path(objects_dir)

    def blobs_dir(self) -> Path:
        return self.objects_dir / BLOBS_SUBDIR

    def commits_dir(self) -> Path:
        return self.objects_dir / COMMITS_SUBDIR

    def init(self) -> None:
        """Create the store directories."""
        self.blobs_dir().mkdir(parents=True, exist_ok=True)
        self.commits_dir().mkdir(parents=True, exist_ok=True)

    def put(self, data: bytes) -> HashRef:
        """Save a blob.

        :param data: The blob content.
        :return: The blob id."""
        blob_hash = hash_bytes(data)
        self._write(self.blobs_dir(), blob_hash, data)
        return blob_hash

    def get(self, blob_hash: str) -> bytes:
        """Load a blob.

        :param blob_hash: The blob id.
        :return: The blob content.
        :raises ObjectNotFoundError: If no blob with that id exists."""
        return self._read(self.blobs_dir(), blob_hash)

    def exists(self, blob_hash: str) -> bool:
        return is_hash(blob_hash) and get_content_path(self.blobs_dir(), blob_hash).is_file()

    def put_commit(self, commit: Commit) -> HashRef:
        """Save a commit under the id derived from its content.

        :param commit: The commit to save.
        :return: The commit id."""
        commit_hash = hash_object(commit)
        self._write(self.commits_dir(), commit_hash, commit.serialize())
        return commit_hash

    def get_commit(self, commit_hash: str) -> Commit:
        """Load a commit.

        :param commit_hash: The commit id.
        :return: The commit.
        :raises ObjectNotFoundError: If no commit with that id exists.
        :raises CorruptObjectError: If the stored record cannot be decoded."""
        return Commit.deserialize(self._read(self.commits_dir(), commit_hash))

    def commit_exists(self, commit_hash: str) -> bool:
        return is_hash(commit_hash) and get_content_path(self.commits_dir(), commit_hash).is_file()

    def commits(self) -> Iterator[HashRef]:
        """Iterate over the ids of every stored commit, in id order."""
        commits_dir = self.commits_dir()
        if not commits_dir.is_dir():
            return

        for shard in sorted(commits_dir.iterdir()):
            if not shard.is_dir():
                continue
            for entry in sorted(shard.iterdir()):
                if is_hash(entry.name):
                    yield HashRef(entry.name)

    def resolve_commit(self, prefix: str) -> HashRef:
        """Expand an abbreviated commit id to the full id.

        :param prefix: A commit id or a unique prefix of one.
        :return: The full commit id.
        :raises NoCommitWithIdError: If no commit starts with the prefix.
        :raises AmbiguousCommitIdError: If more than one commit starts with the prefix."""
        prefix = prefix.lower()
        if not prefix or len(prefix) > HASH_LENGTH or any(c not in HASH_CHARSET for c in prefix):
            msg = 'No commit with that id exists.'
            raise NoCommitWithIdError(msg)

        if len(prefix) == HASH_LENGTH:
            if self.commit_exists(prefix):
                return HashRef(prefix)
            msg = 'No commit with that id exists.'
            raise NoCommitWithIdError(msg)

        matches = [commit_hash for commit_hash in self.commits() if commit_hash.startswith(prefix)]
        if not matches:
            msg = 'No commit with that id exists.'
            raise NoCommitWithIdError(msg)
        if len(matches) > 1:
            msg = f'Commit id {prefix} is ambiguous: matches {len(matches)} commits'
            raise AmbiguousCommitIdError(msg)

        return matches[0]

    def _write(self, root: Path, content_hash: HashRef, data: bytes) -> None:
        path = get_content_path(root, content_hash)
        if path.exists():
            return

        write_atomic(path, data)
        logger.debug('Stored object %s (%d bytes)', content_hash, len(data))

    def _read(self, root: Path, content_hash: str) -> bytes:
        if not is_hash(content_hash):
            msg = f'Invalid object id: {content_hash!r}'
            raise ObjectNotFoundError(msg)

        path = get_content_path(root, content_hash)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            msg = f'Object {content_hash} does not exist'
            raise ObjectNotFoundError(msg) from e
