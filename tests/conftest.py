"""
Shared fixtures: an in-memory stand-in for age and a fake clipboard.
"""
import base64
import hashlib
import os

import pytest

from page.config import PageConfig
from page.crypto import Primitive
from page.errors import DecryptionFailed, EncryptionFailed
from page.keys import KeyManager
from page.storage import SecretStore


class FakePrimitive(Primitive):
    """Reversible, recipient-bound encoding standing in for age."""

    def __init__(self):
        self.fail_encrypt = False
        self.fail_generate = False
        self.wrong_passphrase = False
        self.generated = 0

    def generate_key_pair(self) -> bytes:
        if self.fail_generate:
            raise EncryptionFailed("passphrase prompt aborted")
        self.generated += 1
        return b"FAKE-PROTECTED-KEY-" + os.urandom(8).hex().encode()

    def _recipient(self, key_file: str) -> str:
        if self.wrong_passphrase:
            raise DecryptionFailed("incorrect passphrase")
        with open(key_file, "rb") as f:
            return "fake1" + hashlib.sha256(f.read()).hexdigest()[:16]

    def public_key(self, key_file: str) -> str:
        return self._recipient(key_file)

    def encrypt(self, plaintext: bytes, recipient: str) -> bytes:
        if self.fail_encrypt:
            raise EncryptionFailed("encryption failed")
        return recipient.encode() + b":" + base64.b64encode(plaintext)

    def decrypt(self, ciphertext: bytes, key_file: str) -> bytes:
        recipient = self._recipient(key_file)
        prefix, _, body = ciphertext.partition(b":")
        if prefix.decode() != recipient:
            raise DecryptionFailed("no identity matched")
        return base64.b64decode(body)


class FakeSink:
    """Clipboard that remembers every write."""

    def __init__(self):
        self.content = None
        self.writes = []

    def write(self, text: str) -> None:
        self.content = text
        self.writes.append(text)

    def clear(self) -> None:
        self.write("")


@pytest.fixture
def primitive():
    return FakePrimitive()


@pytest.fixture
def root(tmp_path):
    path = tmp_path / "store"
    path.mkdir()
    return str(path)


@pytest.fixture
def keys(root, primitive):
    return KeyManager(root, primitive)


@pytest.fixture
def store(root, primitive, keys):
    """A store with its master key already generated."""
    keys.generate()
    return SecretStore(root, primitive, keys)


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def config(root):
    return PageConfig(store_dir=root, clipboard="fake-copy", clipboard_timeout=15)


@pytest.fixture(autouse=True)
def keep_umask():
    old = os.umask(0o022)
    os.umask(old)
    yield
    os.umask(old)
