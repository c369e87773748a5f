"""
names.py - Secret name validation

Names are used directly as paths below the store root. validate() is the
only thing standing between a name and the filesystem, so it runs before
any existence check, any mkdir and before the primitive sees the name.
"""
from .errors import InvalidName, MissingArgument, PathTraversal

SEPARATOR = "/"


def validate(name: str) -> str:
    """
    Check a secret name and return its category.

    Args:
        name: Slash-delimited name such as "mail/work"

    Returns:
        The category (everything before the last slash), "" if none

    Raises:
        MissingArgument: Empty or missing name
        InvalidName: Absolute name, or an empty segment ("a//b", "a/")
        PathTraversal: A "." or ".." segment anywhere in the name
    """
    if not name:
        raise MissingArgument()
    if name.startswith(SEPARATOR):
        raise InvalidName(f"'{name}' must not start with '/'")

    segments = name.split(SEPARATOR)
    if any(segment in (".", "..") for segment in segments):
        raise PathTraversal(name)
    if not all(segments):
        raise InvalidName(f"'{name}' contains an empty path segment")
    if "\0" in name:
        raise InvalidName("name contains a NUL byte")

    return category_of(name)


def category_of(name: str) -> str:
    head, sep, _ = name.rpartition(SEPARATOR)
    return head if sep else ""
