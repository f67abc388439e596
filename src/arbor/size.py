from __future__ import annotations

import os
from dataclasses import dataclass, replace

from .models import DiskUsage, PrefixKind

BLOCK_SIZE: int = 512

_BIN_UNITS: tuple[str, ...] = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")
_SI_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB", "PB")


def measure(st: os.stat_result, disk_usage: DiskUsage) -> int:
    """Return the byte count of ``st`` under the given disk usage policy."""
    if disk_usage is DiskUsage.PHYSICAL:
        blocks: int = getattr(st, "st_blocks", 0)
        return blocks * BLOCK_SIZE
    return st.st_size


@dataclass(frozen=True, slots=True)
class FileSize:
    """
    A byte count together with the unit policy it is displayed with.

    Adding sizes only ever touches ``bytes``; the policy fields are carried
    along from the left operand.
    """

    bytes: int
    disk_usage: DiskUsage = DiskUsage.LOGICAL
    prefix: PrefixKind = PrefixKind.BIN
    scale: int = 2

    def __add__(self, other: FileSize | int) -> FileSize:
        if isinstance(other, FileSize):
            return replace(self, bytes=self.bytes + other.bytes)
        if isinstance(other, int):
            return replace(self, bytes=self.bytes + other)
        return NotImplemented

    __radd__ = __add__

    def format(self) -> str:
        base: int = 1024 if self.prefix is PrefixKind.BIN else 1000
        units: tuple[str, ...] = _BIN_UNITS if self.prefix is PrefixKind.BIN else _SI_UNITS

        if self.bytes < base:
            return f"{self.bytes} {units[0]}"

        value: float = float(self.bytes)
        exponent: int = 0
        while value >= base and exponent < len(units) - 1:
            value /= base
            exponent += 1

        return f"{value:.{self.scale}f} {units[exponent]}"

    def __str__(self) -> str:
        return self.format()
