from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

# Half of the in-memory window held per contig, in bases.
DEFAULT_HALF_WINDOW = 1_000_000

# Bytes requested per read from a streamed HTTP response.
DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass
class GenomeConfig:
    """
    Tunables shared by both genome flavours.

    timeout is handed to requests as-is; None means the transport never
    gives up on its own. strict_length only affects the remote backend.
    """

    half_window: int = DEFAULT_HALF_WINDOW
    timeout: Optional[float] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    strict_length: bool = False

    def __post_init__(self) -> None:
        if self.half_window <= 0:
            raise ConfigurationError(
                "half_window must be positive, got %r" % (self.half_window,)
            )
        if self.chunk_size <= 0:
            raise ConfigurationError(
                "chunk_size must be positive, got %r" % (self.chunk_size,)
            )
        if self.timeout is not None and self.timeout < 0:
            raise ConfigurationError(
                "timeout must be >= 0, got %r" % (self.timeout,)
            )
