"""Access to the plain files of a working directory."""

import logging
from pathlib import Path

from .objects import GitletError

logger = logging.getLogger(__name__)


class WorkdirError(GitletError):
    """Exception raised for invalid working directory file names."""


class EmptyFilenameError(WorkdirError):
    """Exception raised when a file name is empty."""


class IsDirectoryError(WorkdirError):
    """Exception raised when a file name refers to a directory."""


class InvalidFilenameError(WorkdirError):
    """Exception raised when a file name is not a plain name inside the working directory."""


class FileNotFoundInWorkdirError(WorkdirError):
    """Exception raised when a file does not exist in the working directory."""


class WorkingDir:
    """The flat set of plain files a repository tracks.

    Only regular files directly inside the directory are visible; sub-directories,
    including the repository directory itself, are ignored."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f'WorkingDir({str(self.path)!r})'

    def file_path(self, filename: str) -> Path:
        """Validate a file name and return its path.

        :param filename: The name of a file in the working directory.
        :return: The path of the file.
        :raises EmptyFilenameError: If the file name is empty.
        :raises InvalidFilenameError: If the name has a path separator or is `.` or `..`.
        :raises IsDirectoryError: If the name refers to a directory."""
        if not filename:
            msg = 'File name is empty'
            raise EmptyFilenameError(msg)
        if filename in ('.', '..') or Path(filename).name != filename:
            msg = f'{filename} is not a file name in the working directory'
            raise InvalidFilenameError(msg)

        path = self.path / filename
        if path.is_dir():
            msg = f'{filename} is a directory'
            raise IsDirectoryError(msg)

        return path

    def exists(self, filename: str) -> bool:
        return self.file_path(filename).is_file()

    def read(self, filename: str) -> bytes:
        """Read a file's content.

        :raises FileNotFoundInWorkdirError: If the file does not exist."""
        path = self.file_path(filename)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            msg = f'File {filename} does not exist'
            raise FileNotFoundInWorkdirError(msg) from e

    def write(self, filename: str, data: bytes) -> None:
        self.file_path(filename).write_bytes(data)
        logger.debug('Wrote %s (%d bytes)', filename, len(data))

    def delete(self, filename: str) -> bool:
        """Delete a file if it exists.

        :return: True if a file was deleted."""
        path = self.file_path(filename)
        if not path.is_file():
            return False

        path.unlink()
        logger.debug('Deleted %s', filename)
        return True

    def files(self) -> list[str]:
        """List the plain files in the working directory, sorted by name."""
        return sorted(entry.name for entry in self.path.iterdir() if entry.is_file())
