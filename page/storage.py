"""
storage.py - The secret repository

Every secret is its own encrypted file below the store root:

    <root>/key.age              master key
    <root>/mail/work.age        secret "mail/work"

Categories are plain directories, created on add and pruned on delete.
"""
import logging
import os
from typing import Iterator, Optional

from .crypto import Primitive
from .errors import AlreadyExists, CategoryCreationFailed, DirectoryAccessFailed, NotFound
from .keys import EXTENSION, MASTER_KEY_FILE, MASTER_KEY_NAME, KeyManager, write_atomic
from .names import validate
from .terminal import confirm as ask

logger = logging.getLogger("page.storage")

# version control metadata kept next to the secrets, never entries
IGNORED_DIRS = frozenset({".git", ".hg", ".svn"})


def ensure_store(root: str) -> str:
    """Create the store root (owner only) if it does not exist yet."""
    try:
        os.makedirs(root, mode=0o700, exist_ok=True)
    except OSError as e:
        raise DirectoryAccessFailed(f"cannot create store at {root}: {e.strerror}") from e
    if not os.access(root, os.R_OK | os.W_OK | os.X_OK):
        raise DirectoryAccessFailed(f"cannot access store at {root}")
    return root


class SecretStore:
    """Maps secret names to encrypted files below root.

    Iterating over a store yields the stored names; every iteration
    rescans the directory tree.
    """

    def __init__(self, root: str, primitive: Primitive, keys: Optional[KeyManager] = None):
        self.root = root
        self.primitive = primitive
        self.keys = keys or KeyManager(root, primitive)

    def path_for(self, name: str) -> str:
        validate(name)
        return os.path.join(self.root, name + EXTENSION)

    def exists(self, name: str) -> bool:
        return os.path.isfile(self.path_for(name))

    def add(self, name: str, secret: bytes) -> str:
        """
        Encrypt secret and store it under name.

        Raises:
            MissingMasterKey: No master key in the store
            AlreadyExists: Name is taken, the existing entry is left untouched
            CategoryCreationFailed: A category directory could not be made
            EncryptionFailed: The primitive failed; no file is left behind
        """
        category = validate(name)
        self.keys.require()
        path = self.path_for(name)
        if os.path.exists(path):
            raise AlreadyExists(name)

        if category:
            try:
                os.makedirs(os.path.join(self.root, category), mode=0o700, exist_ok=True)
            except OSError as e:
                raise CategoryCreationFailed(
                    f"cannot create category '{category}': {e.strerror}"
                ) from e

        recipient = self.keys.public_key()
        ciphertext = self.primitive.encrypt(secret, recipient)
        write_atomic(path, ciphertext)
        logger.debug("Stored %s", name)
        return name

    def read(self, name: str) -> bytes:
        """
        Decrypt and return the secret stored under name.

        Raises:
            MissingMasterKey: No master key in the store
            NotFound: No such entry
            DecryptionFailed: Wrong passphrase or corrupt entry (fatal)
        """
        validate(name)
        self.keys.require()
        if name == MASTER_KEY_NAME:
            raise NotFound(name)
        path = self.path_for(name)
        if not os.path.isfile(path):
            raise NotFound(name)
        with open(path, "rb") as f:
            ciphertext = f.read()
        return self.primitive.decrypt(ciphertext, self.keys.path)

    def delete(self, name: str, confirm=None) -> bool:
        """
        Remove an entry after asking the user, then prune empty categories.

        Does nothing (and reports False) for the master key's name, for a
        name that is not stored, or if the user does not confirm.

        Args:
            name: Secret name
            confirm: Callable taking a prompt and returning bool
        """
        validate(name)
        if name == MASTER_KEY_NAME:
            return False
        path = self.path_for(name)
        if not os.path.isfile(path):
            return False
        confirm = confirm or ask
        if not confirm(f"Delete {name}? [y/N] "):
            return False

        os.remove(path)
        logger.debug("Removed %s", name)
        self._prune(os.path.dirname(path))
        return True

    def _prune(self, directory: str) -> None:
        root = os.path.abspath(self.root)
        directory = os.path.abspath(directory)
        while directory != root and directory.startswith(root + os.sep):
            try:
                os.rmdir(directory)
            except OSError:
                # not empty: nothing more to clean up
                return
            logger.debug("Pruned empty category %s", directory)
            directory = os.path.dirname(directory)

    def names(self) -> Iterator[str]:
        """Yield every stored name in directory traversal order."""
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [d for d in dirnames if d not in IGNORED_DIRS]
            relative = os.path.relpath(dirpath, self.root)
            for filename in filenames:
                if not filename.endswith(EXTENSION):
                    continue
                if relative == "." and filename == MASTER_KEY_FILE:
                    continue
                stem = filename[: -len(EXTENSION)]
                if not stem:
                    continue
                if relative == ".":
                    yield stem
                else:
                    yield "/".join(relative.split(os.sep) + [stem])

    def __iter__(self) -> Iterator[str]:
        return self.names()

    def info(self, name: str) -> dict:
        """File details for the long listing."""
        stat = os.stat(self.path_for(name))
        return {
            "name": name,
            "category": os.path.dirname(name),
            "modified": stat.st_mtime,
            "size": stat.st_size,
        }
