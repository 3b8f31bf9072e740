"""Runtime settings for the cadb CLI.

Values come from environment variables with built-in defaults; command-line
flags override them. The library modules never read the environment
themselves, they take these values as parameters.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .serial import SERIAL_RAND_BITS

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    v = env.get(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"environment variable '{name}' must be an integer, got '{v}'")


@dataclass
class Settings:
    serial_bits: int = SERIAL_RAND_BITS
    new_suffix: str = "new"
    old_suffix: str = "old"
    suffix_sep: str = "."
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        s = cls(
            serial_bits=_int_env(env, "CADB_SERIAL_BITS", SERIAL_RAND_BITS),
            new_suffix=env.get("CADB_NEW_SUFFIX", "new"),
            old_suffix=env.get("CADB_OLD_SUFFIX", "old"),
            suffix_sep=env.get("CADB_SUFFIX_SEP", "."),
            log_level=env.get("CADB_LOG_LEVEL", "WARNING").upper(),
        )
        if s.serial_bits <= 0:
            raise ValueError("CADB_SERIAL_BITS must be positive")
        if s.log_level not in LOG_LEVELS:
            raise ValueError(f"CADB_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        if s.new_suffix == s.old_suffix:
            raise ValueError("CADB_NEW_SUFFIX and CADB_OLD_SUFFIX must differ")
        return s
