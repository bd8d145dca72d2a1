"""Configuration constants for memories-catalog."""

from pathlib import Path

# Import file format version understood by the batch decoder.
SUPPORTED_IMPORT_VERSION: str = "1.0"

# Separator between category names in a category path ("Work/Projects").
PATH_SEPARATOR: str = "/"

# Directory with category files. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/memories-catalog").expanduser(),
    Path("~/.memories-catalog").expanduser(),
    Path("~/.config/memories-catalog").expanduser(),
]

DEFAULT_DATA_DIR: Path = DATA_DIRECTORIES[0]

# Seconds to wait for a remote (http/https) import file.
BATCH_FETCH_TIMEOUT: float = 30.0


def resolve_data_directory() -> Path:
    """Return the first existing data directory, or the default one."""
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DEFAULT_DATA_DIR
