"""
Resolves the raw content of a manifest from a locator, which is either `-` (standard input), an `http://` or
`https://` URL, a file or a directory that contains one of a list of candidate files.
"""

from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlparse

import requests
from loguru import logger

STDIN_LOCATOR = "-"
DEFAULT_CANDIDATES = ("app.json",)


class LocatorNotFoundError(FileNotFoundError):
    """
    Raised when the locator names a path that does not exist, or a directory that contains none of the candidates.
    """


class InvalidLocatorError(ValueError):
    """
    Raised when a URL locator can not be parsed.
    """


@dataclass
class ManifestContent:
    content: bytes
    """ The raw bytes of the manifest. """

    local_path: Path | None = None
    """
    The local path that the content was resolved from. Not set when the content was read from standard input or
    from a URL. For a directory locator, this is the directory itself, not the candidate file that was read.
    """


def is_url(locator: str) -> bool:
    return locator.startswith("http://") or locator.startswith("https://")


def resolve_content(
    locator: str,
    stdin: BinaryIO,
    *candidates: str,
    session: requests.Session | None = None,
) -> ManifestContent:
    """
    Read the manifest content that the *locator* points to.

    Args:
        locator: `-`, a URL, or a path to a file or directory.
        stdin: The stream to read from if the locator is `-`.
        candidates: File names to look for, in order, if the locator is a directory.
        session: The session to use for URL locators. A plain `requests.get()` is used if not set.
    Raises:
        LocatorNotFoundError: If the path does not exist, or no candidate exists in the directory.
        InvalidLocatorError: If the URL can not be parsed.
        OSError: If reading fails. This includes all `requests` errors, e.g. for a non-2xx response.
    """

    if locator == STDIN_LOCATOR:
        logger.debug("Reading manifest from standard input")
        return ManifestContent(stdin.read())

    if is_url(locator):
        return ManifestContent(_read_url(locator, session))

    path = Path(locator)
    if not path.exists():
        raise LocatorNotFoundError(f"the path {locator!r} does not exist")

    if not path.is_dir():
        logger.debug("Reading manifest from file '{}'", path)
        return ManifestContent(path.read_bytes(), path)

    for candidate in candidates:
        candidate_path = path / candidate
        if not candidate_path.is_file():
            logger.trace("Candidate '{}' is not a file", candidate_path)
            continue
        logger.debug("Reading manifest from file '{}'", candidate_path)
        # NOTE: The directory is reported as the local path, not the candidate. The template name derives from it.
        return ManifestContent(candidate_path.read_bytes(), path)

    raise LocatorNotFoundError(f"the directory {locator!r} does not contain any of: {', '.join(candidates)}")


def _read_url(url: str, session: requests.Session | None) -> bytes:
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise InvalidLocatorError(f"the URL passed to filename {url!r} is not valid: {exc}")
    if not parsed.hostname:
        raise InvalidLocatorError(f"the URL passed to filename {url!r} is not valid: missing host")

    logger.debug("Fetching manifest from {}", url)
    get = session.get if session is not None else requests.get
    with closing(get(url)) as response:
        response.raise_for_status()
        return response.content
