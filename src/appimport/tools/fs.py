from collections.abc import Sequence
from typing import Literal, overload
from pathlib import Path


@overload
def find_config_file(
    filenames: Sequence[str], cwd: Path | None = None, required: Literal[False] = False
) -> Path | None: ...


@overload
def find_config_file(filenames: Sequence[str], cwd: Path | None = None, required: Literal[True] = True) -> Path: ...


def find_config_file(filenames: Sequence[str], cwd: Path | None = None, required: bool = True) -> Path | None:
    """
    Find the first file matching one of *filenames* in the given *cwd* or any of its parent directories. Within a
    single directory, the order of *filenames* decides which file wins.
    """

    if cwd is None:
        cwd = Path.cwd()

    for directory in [cwd] + list(cwd.parents):
        for filename in filenames:
            file = directory / filename
            if file.is_file():
                return file

    if required:
        raise FileNotFoundError(
            f"Could not find any of {', '.join(map(repr, filenames))} in '{cwd}' or any of its parent directories."
        )

    return None
