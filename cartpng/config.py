"""
Codec Settings.

Settings shared by the packer and the command line. Defaults live in
DEFAULT_SETTINGS; a JSON file with the same keys can override them.

Example:
    >>> settings = load_settings("cartpng.json")
    >>> packer = CartPacker(settings=settings)
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class CodecSettings:
    """
    Settings for encoding and decoding carts.

    Attributes:
        compress_level: zlib level (0-9) used when writing the output PNG.
            Only affects the size of the file, never the decoded pixels.
        cover_path: Optional path to a substitute cover image. Both sides
            of an interchange must use the same cover.
    """

    compress_level: int = 6
    cover_path: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.compress_level, int) or isinstance(self.compress_level, bool):
            raise ValueError(f"compress_level must be an integer, got {self.compress_level!r}")
        if not 0 <= self.compress_level <= 9:
            raise ValueError(f"compress_level must be between 0 and 9, got {self.compress_level}")
        if self.cover_path is not None and not isinstance(self.cover_path, str):
            raise ValueError(f"cover_path must be a string, got {self.cover_path!r}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodecSettings":
        """Build settings from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return cls(**data)


DEFAULT_SETTINGS = CodecSettings()


def load_settings(path: Union[str, Path]) -> CodecSettings:
    """
    Load settings from a JSON file.

    Args:
        path: File containing a JSON object with CodecSettings keys

    Returns:
        CodecSettings with file values applied over the defaults

    Raises:
        ValueError: If the file is not a JSON object or has unknown keys
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")

    settings = CodecSettings.from_dict(data)
    logger.debug(f"Loaded settings from {path}: {settings.to_dict()}")
    return settings
