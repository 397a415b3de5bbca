"""SSH host key loading.

The server identifies itself with a single private key stored on disk.
On first start no key exists yet, so one is generated and persisted,
keeping the fingerprint stable across restarts.
"""

from __future__ import annotations

import logging
from pathlib import Path

import paramiko
from paramiko.pkey import UnknownKeyType

logger = logging.getLogger(__name__)

GENERATED_KEY_BITS = 3072


class HostKeyError(Exception):
    """Raised when an existing host key file cannot be used."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


def load_host_key(path: Path | str, bits: int = GENERATED_KEY_BITS) -> paramiko.PKey:
    """Load the host key at ``path``, creating an RSA key there if missing.

    Raises:
        HostKeyError: If the file exists but is not a usable private key.
        OSError: If the key cannot be read or written.
    """
    path = Path(path)
    if path.exists():
        try:
            key = paramiko.PKey.from_path(path)
        except (paramiko.SSHException, UnknownKeyType, ValueError) as e:
            raise HostKeyError(f"Unusable host key {path}: {e}", path=path) from e
        logger.info("Loaded %s host key from %s", key.get_name(), path)
        return key

    path.parent.mkdir(parents=True, exist_ok=True)
    key = paramiko.RSAKey.generate(bits=bits)
    key.write_private_key_file(str(path))
    logger.info(
        "Generated new %s host key at %s (fingerprint %s)",
        key.get_name(), path, key.fingerprint,
    )
    return key
