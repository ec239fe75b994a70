"""
Configuration for the Grakn client.

Configuration is passed explicitly or loaded from environment variables.
ClientConfig provides typed settings with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Credentials are never logged or exposed in error messages

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Document new environment variables in from_env
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "localhost:48555"
DEFAULT_BATCH_SIZE = 50


@dataclass(frozen=True)
class ClientConfig:
    """Grakn client configuration.

    Attributes:
        address: Server address (host:port)
        secure: Whether to use TLS
        max_message_size: Maximum gRPC message size in bytes
        batch_size: Default iterate batch size when a query sets none
        username: Username for keyspace administration
        password: Password for keyspace administration
    """

    address: str = DEFAULT_ADDRESS
    secure: bool = False
    max_message_size: int = 50 * 1024 * 1024  # 50MB
    batch_size: int | None = DEFAULT_BATCH_SIZE
    username: str | None = None
    password: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.address:
            raise ValueError("address cannot be empty")
        if self.max_message_size <= 0:
            raise ValueError(f"max_message_size must be positive, got {self.max_message_size}")
        if self.batch_size is not None and self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Load configuration from environment variables.

        Variables:
            GRAKN_ADDRESS, GRAKN_SECURE, GRAKN_MAX_MESSAGE_SIZE,
            GRAKN_BATCH_SIZE, GRAKN_USERNAME, GRAKN_PASSWORD
        """
        batch_size = os.getenv("GRAKN_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))
        config = cls(
            address=os.getenv("GRAKN_ADDRESS", DEFAULT_ADDRESS),
            secure=os.getenv("GRAKN_SECURE", "false").lower() == "true",
            max_message_size=int(os.getenv("GRAKN_MAX_MESSAGE_SIZE", str(50 * 1024 * 1024))),
            batch_size=int(batch_size) if batch_size else None,
            username=os.getenv("GRAKN_USERNAME"),
            password=os.getenv("GRAKN_PASSWORD"),
        )
        logger.debug(f"Loaded client config for {config.address} (secure={config.secure})")
        return config
