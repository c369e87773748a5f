"""
keys.py - The master key pair

One passphrase-protected key file per store. It is written once by
gen-key and only ever read afterwards.
"""
import logging
import os

from .crypto import Primitive
from .errors import AlreadyExists, MissingMasterKey

logger = logging.getLogger("page.keys")

MASTER_KEY_NAME = "key"
EXTENSION = ".age"
MASTER_KEY_FILE = MASTER_KEY_NAME + EXTENSION


def write_atomic(path: str, data: bytes) -> None:
    """Write data next to path and rename it into place.

    The temporary file is removed if anything goes wrong, so either the
    complete file exists afterwards or nothing does.
    """
    tmp = f"{path}.tmp{os.getpid()}"
    try:
        with open(tmp, "xb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise


class KeyManager:
    """Creates and guards the master key file of a store"""

    def __init__(self, root: str, primitive: Primitive):
        self.root = root
        self.primitive = primitive
        self.path = os.path.join(root, MASTER_KEY_FILE)

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def require(self) -> None:
        if not self.exists():
            raise MissingMasterKey()

    def generate(self) -> str:
        """
        Create the master key file.

        Returns:
            Path of the new key file

        Raises:
            AlreadyExists: If the store already has a master key
            EncryptionFailed: If the primitive could not create it
        """
        if self.exists():
            raise AlreadyExists(MASTER_KEY_FILE)
        key_material = self.primitive.generate_key_pair()
        write_atomic(self.path, key_material)
        logger.debug("Master key written to %s", self.path)
        return self.path

    def public_key(self) -> str:
        """Public half of the master key, prompts for the passphrase."""
        self.require()
        return self.primitive.public_key(self.path)
