from pathlib import Path

from blob_cache import config
from blob_cache.app.errors import InvalidHashError


def hash_to_path(root: Path, hash_token: str) -> Path:
    """Map a hash token to its sharded location: root/<first 2 chars>/<hash>.zip

    The token is only checked for length; it is not verified to be hex.
    """
    if len(hash_token) < config.MIN_HASH_LENGTH:
        raise InvalidHashError("hash too short")

    prefix = hash_token[:config.SHARD_PREFIX_LENGTH]
    return root / prefix / f"{hash_token}{config.BINARY_SUFFIX}"


def asset_path(asset_root: Path, name: str) -> Path:
    return asset_root / name
