"""Configuration settings for the Blob Cache Server."""
import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

# Listener defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000

# Streaming
CHUNK_SIZE = 8192  # 8KB chunks

# Hash constraints
MIN_HASH_LENGTH = 20
SHARD_PREFIX_LENGTH = 2
BINARY_SUFFIX = ".zip"

# Logging
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class ServerConfig:
    root: Path
    asset_root: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    chunk_size: int = CHUNK_SIZE
    log_dir: Optional[Path] = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_args(cls, argv: Optional[List[str]] = None) -> 'ServerConfig':
        """Create ServerConfig from command line arguments.

        Both storage roots must already exist; the server never creates them.
        """
        parser = argparse.ArgumentParser(description='Content-addressed blob cache server')
        parser.add_argument('--root', type=Path, required=True,
                            help='Root directory for content-addressed binaries')
        parser.add_argument('--asset-root', type=Path, required=True,
                            help='Root directory for named assets')
        parser.add_argument('--host', type=str, default=DEFAULT_HOST,
                            help='Listen address')
        parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                            help='Listen port')
        parser.add_argument('--chunk-size', type=int, default=CHUNK_SIZE,
                            help='Streaming chunk size in bytes')
        parser.add_argument('--log-dir', type=Path, default=None,
                            help='Directory for the log file (console only if omitted)')
        parser.add_argument('--log-level', type=str, default=DEFAULT_LOG_LEVEL,
                            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                            help='Console log level')
        args = parser.parse_args(argv)

        if not args.root.is_dir():
            parser.error(f"Storage root '{args.root}' does not exist or is not a directory.")
        if not args.asset_root.is_dir():
            parser.error(f"Asset root '{args.asset_root}' does not exist or is not a directory.")
        if args.chunk_size <= 0:
            parser.error("--chunk-size must be positive.")

        return cls(
            root=args.root,
            asset_root=args.asset_root,
            host=args.host,
            port=args.port,
            chunk_size=args.chunk_size,
            log_dir=args.log_dir,
            log_level=args.log_level
        )
