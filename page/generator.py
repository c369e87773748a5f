"""
generator.py - Random secrets from a tr(1) style character set

The pattern decides which characters may appear, e.g.

    [:alnum:]_        letters, digits and underscore (the default)
    [:digit:]         a PIN
    a-f0-9            lowercase hex
"""
import secrets
import string
from typing import FrozenSet

from .errors import GenerationFailed, Mismatch
from .terminal import read_secret

DEFAULT_LENGTH = 12
DEFAULT_PATTERN = "[:alnum:]_"

CLASSES = {
    "alnum": string.ascii_letters + string.digits,
    "alpha": string.ascii_letters,
    "digit": string.digits,
    "lower": string.ascii_lowercase,
    "upper": string.ascii_uppercase,
    "punct": string.punctuation,
    "xdigit": string.hexdigits,
    "space": " \t\n\r\v\f",
    "blank": " \t",
    "graph": string.ascii_letters + string.digits + string.punctuation,
    "print": string.ascii_letters + string.digits + string.punctuation + " ",
}

ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "-": "-"}


def parse_pattern(pattern: str) -> FrozenSet[int]:
    """
    Turn a tr(1) style set into the byte values it accepts.

    Raises:
        GenerationFailed: Unknown [:class:] name
    """
    accepted = set()
    i = 0
    while i < len(pattern):
        if pattern.startswith("[:", i):
            end = pattern.find(":]", i + 2)
            if end == -1:
                raise GenerationFailed(f"unterminated character class in {pattern!r}")
            name = pattern[i + 2:end]
            if name not in CLASSES:
                raise GenerationFailed(f"unknown character class [:{name}:]")
            accepted.update(CLASSES[name].encode())
            i = end + 2
            continue

        char, i = _char_at(pattern, i)
        if i + 1 < len(pattern) and pattern[i] == "-":
            last, after = _char_at(pattern, i + 1)
            if ord(last) < ord(char):
                raise GenerationFailed(f"range {char}-{last} is out of order")
            accepted.update(c for c in range(ord(char), ord(last) + 1) if c < 256)
            i = after
        elif ord(char) < 256:
            accepted.add(ord(char))
    return frozenset(accepted)


def _char_at(pattern: str, i: int):
    if pattern[i] == "\\" and i + 1 < len(pattern):
        return ESCAPES.get(pattern[i + 1], pattern[i + 1]), i + 2
    return pattern[i], i + 1


def generate_password(pattern: str = DEFAULT_PATTERN, length: int = DEFAULT_LENGTH) -> str:
    """
    Generate a random secret.

    Random bytes come from the OS CSPRNG and are kept only if they fall in
    the pattern, so every accepted character is equally likely.

    Args:
        pattern: tr(1) style set of allowed characters
        length: Number of characters

    Returns:
        The secret

    Raises:
        GenerationFailed: Non-positive length or a pattern matching nothing
    """
    if length < 1:
        raise GenerationFailed("password length must be at least 1")
    accepted = parse_pattern(pattern)
    if not accepted:
        raise GenerationFailed(f"pattern {pattern!r} matches no characters")

    result = bytearray()
    while len(result) < length:
        chunk = secrets.token_bytes(max(64, 2 * (length - len(result))))
        result.extend(b for b in chunk if b in accepted)
    password = bytes(result[:length]).decode("latin-1")
    if not password:
        raise GenerationFailed("generated password is empty")
    return password


def read_manual_secret(prompt: str = "Password: ", read=None) -> str:
    """
    Ask for a secret twice without echo.

    Raises:
        Mismatch: The two entries differ
        GenerationFailed: The entry is empty
    """
    read = read or read_secret
    first = read(prompt)
    second = read("Confirm password: ")
    if first != second:
        raise Mismatch()
    if not first:
        raise GenerationFailed("empty password")
    return first
