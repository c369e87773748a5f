"""
crypto.py - The encryption primitive

page never does cryptography itself. Every encrypt/decrypt goes through a
separate, independently auditable tool (age by default). The Primitive
interface below is all the rest of the package sees, so tests can swap
in a double.
"""
import logging
import shutil
import subprocess
from typing import List, Optional

from .errors import DecryptionFailed, EncryptionFailed, PrimitiveNotFound

logger = logging.getLogger("page.crypto")

AGE_URL = "https://github.com/FiloSottile/age"


class Primitive:
    """Asymmetric encryption service used by the key manager and the store.

    Key material lives in a single passphrase-protected file; methods that
    need the private half take the path of that file and are expected to
    prompt for the passphrase themselves.
    """

    def check(self) -> None:
        """Raise PrimitiveNotFound if the service cannot be used."""

    def generate_key_pair(self) -> bytes:
        """Return fresh private key material, passphrase protected."""
        raise NotImplementedError

    def public_key(self, key_file: str) -> str:
        """Return the recipient string for the key stored in key_file."""
        raise NotImplementedError

    def encrypt(self, plaintext: bytes, recipient: str) -> bytes:
        raise NotImplementedError

    def decrypt(self, ciphertext: bytes, key_file: str) -> bytes:
        raise NotImplementedError


class ToolError(Exception):
    """A primitive command exited non-zero"""


class AgeTool(Primitive):
    """Primitive backed by the age and age-keygen binaries.

    Passphrase prompts are left to age, which reads them from the
    controlling terminal rather than from stdin.
    """

    def __init__(self, age: str = "age", keygen: str = "age-keygen"):
        self.age = age
        self.keygen = keygen

    def check(self) -> None:
        for binary in (self.age, self.keygen):
            if shutil.which(binary) is None:
                raise PrimitiveNotFound(f"'{binary}' is not installed, see {AGE_URL}")

    def _run(self, command: List[str], input_data: Optional[bytes] = None) -> bytes:
        logger.debug("Running %s", " ".join(command[:2]))
        try:
            process = subprocess.run(command, input=input_data, capture_output=True)
        except FileNotFoundError as e:
            raise PrimitiveNotFound(f"'{command[0]}' is not installed, see {AGE_URL}") from e
        if process.returncode != 0:
            raise ToolError(process.stderr.decode(errors="replace").strip())
        return process.stdout

    def generate_key_pair(self) -> bytes:
        try:
            identity = self._run([self.keygen])
            # -p prompts on the tty, the identity itself goes in on stdin
            return self._run([self.age, "-p", "-a"], identity)
        except ToolError as e:
            raise EncryptionFailed(f"could not create master key: {e}") from e

    def public_key(self, key_file: str) -> str:
        try:
            identity = self._run([self.age, "-d", key_file])
        except ToolError as e:
            raise DecryptionFailed(f"could not unlock master key: {e}") from e
        try:
            return self._run([self.keygen, "-y"], identity).decode().strip()
        except ToolError as e:
            raise DecryptionFailed(f"could not read master key: {e}") from e

    def encrypt(self, plaintext: bytes, recipient: str) -> bytes:
        try:
            return self._run([self.age, "-r", recipient], plaintext)
        except ToolError as e:
            raise EncryptionFailed(f"encryption failed: {e}") from e

    def decrypt(self, ciphertext: bytes, key_file: str) -> bytes:
        # age understands passphrase-protected identity files passed with -i
        try:
            return self._run([self.age, "-d", "-i", key_file], ciphertext)
        except ToolError as e:
            raise DecryptionFailed(f"decryption failed: {e}") from e
