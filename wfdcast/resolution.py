"""Video resolution descriptions used in WFD capability negotiation."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True)
class Resolution:
    """A display mode: size, refresh rate and scan type."""

    width: int = 0
    height: int = 0
    refresh_rate: int = 0
    interlaced: bool = False

    def copy(self) -> Resolution:
        """Return an equal, independent resolution."""
        return dataclasses.replace(self)

    def __str__(self) -> str:
        scan = "i" if self.interlaced else "p"
        return f"{self.width}x{self.height} {self.refresh_rate}{scan}"