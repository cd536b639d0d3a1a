"""Object model: content digests and the immutable commit record."""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .constants import HASH_CHARSET, HASH_LENGTH, INITIAL_COMMIT_MESSAGE, ROOT_TIMESTAMP


class GitletError(Exception):
    """Base class for every error raised by libgitlet."""


class CorruptObjectError(GitletError):
    """Exception raised when a stored object cannot be decoded."""


class HashRef(str):
    """A reference to an object by its hex-encoded SHA-1 digest."""

    def __new__(cls, value: str) -> 'HashRef':
        if not is_hash(value):
            msg = f'Invalid hash: {value!r}'
            raise ValueError(msg)

        return super().__new__(cls, value)


def is_hash(value: object) -> bool:
    """Check whether a value looks like a full object digest."""
    return (isinstance(value, str) and len(value) == HASH_LENGTH
            and all(c in HASH_CHARSET for c in value))


def hash_bytes(data: bytes) -> HashRef:
    """Compute the digest identifying a byte sequence.

    :param data: The bytes to hash.
    :return: The hex SHA-1 digest of the data."""
    return HashRef(hashlib.sha1(data).hexdigest())


@dataclass(frozen=True)
class Commit:
    """An immutable snapshot of the tracked files at one point in history.

    Commits reference their parents by id only, the store resolves them."""

    message: str
    timestamp: int
    parent: HashRef | None = None
    merge_parent: HashRef | None = None
    snapshot: dict[str, HashRef] = field(default_factory=dict)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_merge(self) -> bool:
        return self.merge_parent is not None

    def blob(self, filename: str) -> HashRef | None:
        """Return the blob id tracked for a filename, or None if the file is not tracked."""
        return self.snapshot.get(filename)

    def tracks(self, filename: str) -> bool:
        return filename in self.snapshot

    def date(self) -> datetime:
        """Return the commit time as an aware datetime in the local timezone."""
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).astimezone()

    def serialize(self) -> bytes:
        """Encode the commit in its canonical form.

        The encoding is deterministic (sorted keys, no whitespace), so equal commits
        always serialize, and therefore hash, identically.

        :return: The UTF-8 encoded JSON record."""
        record = {
            'message': self.message,
            'timestamp': self.timestamp,
            'parent': self.parent,
            'merge_parent': self.merge_parent,
            'snapshot': dict(sorted(self.snapshot.items())),
        }
        return json.dumps(record, sort_keys=True, separators=(',', ':')).encode('utf-8')

    @classmethod
    def deserialize(cls, data: bytes) -> 'Commit':
        """Decode a commit previously produced by `serialize`.

        :param data: The encoded commit record.
        :return: The decoded Commit.
        :raises CorruptObjectError: If the data is not a valid commit record."""
        try:
            record = json.loads(data.decode('utf-8'))
            parent = record['parent']
            merge_parent = record['merge_parent']
            return cls(record['message'],
                       int(record['timestamp']),
                       HashRef(parent) if parent else None,
                       HashRef(merge_parent) if merge_parent else None,
                       {name: HashRef(blob) for name, blob in record['snapshot'].items()})
        except (UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError) as e:
            msg = 'Invalid commit record'
            raise CorruptObjectError(msg) from e


def hash_object(commit: Commit) -> HashRef:
    """Compute the id of a commit from its canonical serialization."""
    return hash_bytes(commit.serialize())


def initial_commit() -> Commit:
    """Create the root commit every repository starts from.

    It has a fixed message and timestamp and an empty snapshot, so all repositories
    share the same root id."""
    return Commit(INITIAL_COMMIT_MESSAGE, ROOT_TIMESTAMP)
