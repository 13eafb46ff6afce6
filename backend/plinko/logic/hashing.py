"""SHA-256 helpers for the commit-reveal protocol.

The ``:`` separators and field order are part of the wire contract: any
change here breaks verification of previously published commitments.
"""
import hashlib
import secrets


def sha256_hex(value: str | bytes) -> str:
    """Return the lowercase hex SHA-256 digest of ``value`` (text is UTF-8)."""
    if isinstance(value, str):
        value = value.encode("utf-8")
    return hashlib.sha256(value).hexdigest()


def random_hex(byte_length: int = 32) -> str:
    """Return ``byte_length`` cryptographically secure random bytes as hex."""
    if byte_length <= 0:
        raise ValueError(f"byte_length must be positive, got {byte_length}")
    return secrets.token_hex(byte_length)


def commit_hash(server_seed: str, nonce: str) -> str:
    """Commitment published before play: ``H("{serverSeed}:{nonce}")``."""
    return sha256_hex(f"{server_seed}:{nonce}")


def combined_seed(server_seed: str, client_seed: str, nonce: str) -> str:
    """Round entropy: ``H("{serverSeed}:{clientSeed}:{nonce}")``."""
    return sha256_hex(f"{server_seed}:{client_seed}:{nonce}")


def verify_commit(expected_commit: str, server_seed: str, nonce: str) -> bool:
    """Recompute the commitment and compare it with the published one."""
    return commit_hash(server_seed, nonce) == expected_commit
