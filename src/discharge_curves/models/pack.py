"""
Battery Pack Configuration
==========================

Series/parallel arrangement of identical cells, parsed from the usual
"NsMp" notation (e.g. "2s3p").

Series cells add voltage, so a pack voltage divides down to a per-cell
voltage. Parallel cells add capacity, so per-cell energy multiplies up.
"""

import re
from dataclasses import dataclass

from ..errors import InvalidConfigError


# Whole-token match only; ASCII digits, lowercase s/p
PACK_CONFIG_PATTERN = re.compile(r"([0-9]+)s([0-9]+)p")


@dataclass(frozen=True)
class PackConfig:
    """
    Cell arrangement of a battery pack.

    Attributes:
    ----------
    series : int
        Number of cells in series (>= 1)

    parallel : int
        Number of cells in parallel (>= 1)
    """
    series: int = 1
    parallel: int = 1

    def __post_init__(self):
        for name in ("series", "parallel"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidConfigError(f"{name.capitalize()} must be an integer >= 1, got {value!r}")

    @property
    def total_cells(self) -> int:
        """Total number of cells in pack."""
        return self.series * self.parallel

    @property
    def configuration_string(self) -> str:
        """Configuration string (e.g., '2s3p')."""
        return f"{self.series}s{self.parallel}p"

    def to_cell_voltage(self, pack_voltage: float) -> float:
        """Pack terminal voltage -> per-cell voltage."""
        return pack_voltage / self.series


def parse_pack_config(token: str) -> PackConfig:
    """
    Parse a pack configuration string.

    Accepts exactly "<digits>s<digits>p" with nothing before or after it.

    Parameters:
    ----------
    token : str
        Configuration string (e.g., "1s2p", "3s4p")

    Returns:
    -------
    PackConfig
        Parsed series/parallel counts

    Raises:
    ------
    InvalidConfigError
        If the string does not match the pattern or a count is zero.
    """
    if not isinstance(token, str):
        raise InvalidConfigError(
            f"Invalid battery pack configuration {token!r}. "
            'Please provide a configuration string such as "2s2p".'
        )

    match = PACK_CONFIG_PATTERN.fullmatch(token)
    if match is None:
        raise InvalidConfigError(
            f"Invalid battery pack configuration {token!r}. "
            'Please provide a valid configuration (e.g., "2s2p").'
        )

    return PackConfig(series=int(match.group(1)), parallel=int(match.group(2)))
