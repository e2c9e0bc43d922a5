"""
Reference Resolver - classifies media references and checks local inputs exist.
"""

import logging
import os
import re
from typing import Iterable, Literal, Optional, Union

logger = logging.getLogger(__name__)

ReferenceType = Literal["local", "remote"]

_REMOTE_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


class MissingReferencesError(Exception):
    """Raised when one or more local references do not exist."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing local files: {', '.join(missing)}")


def is_remote(reference: str) -> bool:
    """Check whether a reference is an http(s) locator."""
    return bool(_REMOTE_PATTERN.match(reference.strip()))


def classify(reference: str) -> ReferenceType:
    """Classify a reference as "remote" or "local"."""
    return "remote" if is_remote(reference) else "local"


def resolve(reference: str, media_root: Optional[str] = None) -> str:
    """
    Resolve a reference into the form handed to the engine.

    Remote references are returned untouched. Local references become
    absolute paths, relative ones anchored at media_root (or the cwd).
    """
    reference = reference.strip()
    if is_remote(reference):
        return reference

    path = os.path.expanduser(reference)
    if not os.path.isabs(path) and media_root:
        path = os.path.join(media_root, path)
    return os.path.abspath(path)


def validate(
    references: Union[str, Iterable[Optional[str]], None],
    media_root: Optional[str] = None,
) -> list[str]:
    """
    Find local references that do not exist on disk.

    Remote references are never checked; the engine fails the job later
    if one of them is unreachable.

    Args:
        references: One reference or an iterable of references (None entries skipped)
        media_root: Base directory for relative local paths

    Returns:
        Resolved absolute paths of every missing local reference, in input order
    """
    if references is None:
        return []
    if isinstance(references, str):
        references = [references]

    missing = []
    for reference in references:
        if not reference or is_remote(reference):
            continue
        path = resolve(reference, media_root)
        if not os.path.exists(path):
            missing.append(path)

    if missing:
        logger.debug(f"Missing local references: {missing}")
    return missing


def ensure_exist(
    reference_groups: Iterable[Union[str, Iterable[Optional[str]], None]],
    media_root: Optional[str] = None,
) -> None:
    """
    Validate several reference categories and report all missing paths at once.

    Raises:
        MissingReferencesError: If any local reference is absent
    """
    missing = []
    for group in reference_groups:
        missing.extend(validate(group, media_root))
    if missing:
        raise MissingReferencesError(missing)
