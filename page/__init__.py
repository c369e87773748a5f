"""
page - A local secret store built on age.

Features:
- One age-encrypted file per secret, organised in category directories
- A single passphrase-protected master key per store
- Random password generation from tr(1) style character sets
- Clipboard copy with automatic clearing
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .storage import SecretStore
from .keys import KeyManager
from .generator import generate_password

__all__ = ["SecretStore", "KeyManager", "generate_password"]
