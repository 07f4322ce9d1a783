"""
Linker Configuration
====================

Configuration for a link run. Values can come from:
- Default values (defined here)
- Environment variables (LinkerConfig.from_env)
- Command-line options (the twopass CLI overrides individual fields)

The machine size bounds every address. Because a word is encoded as
opcode * 1000 + address, the machine size can never exceed 1000.
"""

from dataclasses import dataclass
from enum import Enum
import logging
import os

from twopass_linker.errors import LinkerConfigError

logger = logging.getLogger(__name__)


# Words are opcode * WORD_RADIX + address
WORD_RADIX = 1000


class DuplicatePolicy(Enum):
    """
    What to do when two modules define the same symbol.

    ERROR is the default. With FIRST the earliest definition wins, with
    LAST the latest one does.
    """
    ERROR = "error"
    FIRST = "first"
    LAST = "last"


@dataclass
class LinkerConfig:
    """
    Settings for a link run.

    Attributes:
        machine_size: Number of addressable words (default: 1000)
        duplicate_policy: Handling of symbols defined more than once
        warn_unused: Report defined-but-unused symbols and unused uses
    """

    machine_size: int = WORD_RADIX
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.ERROR
    warn_unused: bool = True

    @property
    def max_address(self) -> int:
        """Highest valid address."""
        return self.machine_size - 1

    def validate(self) -> "LinkerConfig":
        """
        Check that all values are usable.

        Returns:
            self, so calls can be chained

        Raises:
            LinkerConfigError: If a value is out of range
        """
        if not isinstance(self.duplicate_policy, DuplicatePolicy):
            raise LinkerConfigError(
                f"unknown duplicate policy {self.duplicate_policy!r}"
            )
        if not 1 <= self.machine_size <= WORD_RADIX:
            raise LinkerConfigError(
                f"machine size must be between 1 and {WORD_RADIX}, "
                f"got {self.machine_size}"
            )
        return self

    @classmethod
    def from_env(cls) -> "LinkerConfig":
        """
        Create a LinkerConfig from environment variables.

        Environment variables (all optional):
            TWOPASS_MACHINE_SIZE: Number of addressable words (integer)
            TWOPASS_DUPLICATES: "error", "first" or "last"
            TWOPASS_WARN_UNUSED: "0"/"false"/"no" disables unused warnings

        Invalid values are logged and the default is kept.
        """
        config = cls()

        if size := os.environ.get("TWOPASS_MACHINE_SIZE"):
            try:
                config.machine_size = int(size)
            except ValueError:
                logger.warning(f"Ignoring invalid TWOPASS_MACHINE_SIZE={size!r}")

        if policy := os.environ.get("TWOPASS_DUPLICATES"):
            try:
                config.duplicate_policy = DuplicatePolicy(policy.lower())
            except ValueError:
                logger.warning(f"Ignoring invalid TWOPASS_DUPLICATES={policy!r}")

        if warn := os.environ.get("TWOPASS_WARN_UNUSED"):
            config.warn_unused = warn.lower() not in ("0", "false", "no", "off")

        return config
