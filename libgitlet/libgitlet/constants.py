"""Constants used throughout libgitlet."""

DEFAULT_REPO_DIR = '.gitlet'
DEFAULT_BRANCH = 'master'

OBJECTS_SUBDIR = 'objects'
BLOBS_SUBDIR = 'blobs'
COMMITS_SUBDIR = 'commits'
STATE_FILE = 'state.json'

HASH_LENGTH = 40
HASH_CHARSET = '0123456789abcdef'
SHORT_HASH_LENGTH = 7

INITIAL_COMMIT_MESSAGE = 'initial commit'
ROOT_TIMESTAMP = 0

CONFLICT_HEAD_MARKER = b'<<<<<<< HEAD\n'
CONFLICT_SEPARATOR = b'=======\n'
CONFLICT_END_MARKER = b'>>>>>>>\n'
