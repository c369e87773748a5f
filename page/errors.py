"""
errors.py - Everything that can go wrong in page

Each error carries a single line message and exits with status 1.
click renders them as "Error: <message>" on stderr.
"""
import click


class PageError(click.ClickException):
    """Base class for all page errors"""

    exit_code = 1


class ConfigError(PageError):
    """An environment setting could not be parsed"""


class MissingArgument(PageError):
    """A command needs a secret name and none was given"""

    def __init__(self, what: str = "secret name"):
        super().__init__(f"missing {what}")


class InvalidName(PageError):
    """Secret name is malformed (absolute, empty segment, ...)"""


class PathTraversal(PageError):
    """Secret name tries to walk out of the store"""

    def __init__(self, name: str):
        super().__init__(f"'{name}' contains a '.' or '..' path segment")


class MissingMasterKey(PageError):
    def __init__(self):
        super().__init__("no master key found, run 'page gen-key' first")


class AlreadyExists(PageError):
    def __init__(self, name: str):
        super().__init__(f"'{name}' already exists")


class NotFound(PageError):
    def __init__(self, name: str):
        super().__init__(f"'{name}' does not exist")


class CategoryCreationFailed(PageError):
    pass


class GenerationFailed(PageError):
    pass


class Mismatch(PageError):
    def __init__(self):
        super().__init__("entries do not match")


class EncryptionFailed(PageError):
    pass


class DecryptionFailed(PageError):
    """Raised when a stored file cannot be decrypted.

    Never recovered from: a wrong passphrase or a corrupt store ends the
    whole process.
    """


class PrimitiveNotFound(PageError):
    pass


class DirectoryAccessFailed(PageError):
    pass


class UsageFailed(PageError):
    """An option was given a value it cannot take"""
