"""H.264 video codec capabilities as exchanged in WFD ``wfd_video_formats``."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass

from .resolution import Resolution

logger = logging.getLogger(__name__)


class H264Profile(enum.IntEnum):
    BASE = 0x01
    HIGH = 0x02


class ResolutionTable(enum.IntEnum):
    CEA = 0x00
    HH = 0x01
    VESA = 0x02


_R = Resolution

_CEA_RESOLUTIONS = (
    _R(640, 480, 60, False),
    _R(720, 480, 60, False),
    _R(720, 480, 60, True),
    _R(720, 576, 50, False),
    _R(720, 576, 50, True),
    _R(1280, 720, 30, False),
    _R(1280, 720, 60, False),
    _R(1920, 1080, 30, False),
    _R(1920, 1080, 60, False),
    _R(1920, 1080, 60, True),
    _R(1290, 720, 25, False),
    _R(1280, 720, 50, False),
    _R(1920, 1080, 25, False),
    _R(1920, 1080, 50, False),
    _R(1920, 1080, 50, True),
    _R(1280, 720, 24, False),
    _R(1920, 1080, 25, False),
)

_VESA_RESOLUTIONS = (
    _R(800, 600, 30, False),
    _R(800, 600, 60, False),
    _R(1024, 768, 30, False),
    _R(1024, 768, 60, False),
    _R(1152, 864, 30, False),
    _R(1152, 864, 60, False),
    _R(1280, 768, 30, False),
    _R(1280, 768, 60, False),
    _R(1280, 800, 30, False),
    _R(1280, 800, 60, False),
    _R(1360, 768, 30, False),
    _R(1360, 768, 60, False),
    _R(1366, 768, 30, False),
    _R(1366, 768, 60, False),
    _R(1280, 1024, 30, False),
    _R(1280, 1024, 60, False),
    _R(1400, 1050, 30, False),
    _R(1400, 1050, 60, False),
    _R(1440, 900, 30, False),
    _R(1440, 900, 60, False),
    _R(1600, 900, 30, False),
    _R(1600, 900, 60, False),
    _R(1600, 1200, 30, False),
    _R(1600, 1200, 60, False),
    _R(1680, 1024, 30, False),
    _R(1680, 1024, 30, False),
    _R(1680, 1050, 30, False),
    _R(1680, 1050, 60, False),
    _R(1920, 1200, 30, False),
)

_HH_RESOLUTIONS = (
    _R(800, 480, 30, False),
    _R(800, 480, 60, False),
    _R(854, 480, 30, False),
    _R(854, 480, 60, False),
    _R(864, 480, 30, False),
    _R(864, 480, 60, False),
    _R(640, 360, 30, False),
    _R(640, 360, 60, False),
    _R(960, 540, 30, False),
    _R(960, 540, 60, False),
    _R(848, 480, 30, False),
    _R(848, 480, 60, False),
)

_TABLES = {
    ResolutionTable.CEA: _CEA_RESOLUTIONS,
    ResolutionTable.HH: _HH_RESOLUTIONS,
    ResolutionTable.VESA: _VESA_RESOLUTIONS,
}

_BITRATE_BY_LEVEL = {
    1: 14000,
    1 << 1: 20000,
    1 << 2: 20000,
    1 << 3: 50000,
    1 << 4: 50000,
}

_HEX_NUMBER = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]+)")


def _parse_hex(text: str) -> int:
    """Parse the leading hexadecimal number of ``text``; 0 if there is none."""
    match = _HEX_NUMBER.match(text)
    if not match:
        return 0
    value = int(match.group(2), 16)
    return -value if match.group(1) == "-" else value


def _table(table: int) -> tuple[Resolution, ...]:
    try:
        return _TABLES[ResolutionTable(table)]
    except ValueError:
        raise ValueError(f"unknown resolution table {table}") from None


def resolution_table_lookup(table: int, offset: int) -> Resolution | None:
    """Return the resolution at ``offset`` in ``table``, or None if out of range."""
    resolutions = _table(table)
    if 0 <= offset < len(resolutions):
        return resolutions[offset]
    return None


def sup_for_resolution(table: int, resolution: Resolution) -> int:
    """Return the support bit of ``resolution`` in ``table``, or 0 if absent."""
    for index, candidate in enumerate(_table(table)):
        if candidate == resolution:
            return 1 << index
    return 0


@dataclass
class VideoCodec:
    """One H.264 codec entry of a sink's video capabilities."""

    profile: H264Profile = H264Profile.BASE
    level: int = 0
    latency: int = 0
    frame_skipping_allowed: bool = False
    native: Resolution | None = None
    cea_sup: int = 0
    vesa_sup: int = 0
    hh_sup: int = 0
    min_slice_size: int = 0
    max_slice_num: int = 0
    max_slice_size_ratio: int = 0

    @classmethod
    def from_descriptor(cls, native: int, descr: str) -> VideoCodec:
        """Parse a video codec descriptor; raises ValueError if it is invalid."""
        tokens = descr.split(" ", 10)
        if len(tokens) < 9:
            raise ValueError(f"video codec descriptor has too few fields: {descr!r}")

        profile = _parse_hex(tokens[0])
        if profile not in (H264Profile.BASE, H264Profile.HIGH):
            raise ValueError(f"unknown profile 0x{profile:x}")

        level = _parse_hex(tokens[1])
        if not 0 <= level <= 255:
            raise ValueError(f"unreasonable level 0x{level:x}")

        min_slice_size = _parse_hex(tokens[6]) & 0xFFFFFFFF
        slice_params = _parse_hex(tokens[7]) & 0xFFFFFFFF
        max_slice_num = (slice_params & 0x1FF) + 1
        # A minimum slice size of 0 means the sink does not support slicing.
        if min_slice_size == 0:
            max_slice_num = 1

        native_res = None
        if (native & 0x7) in ResolutionTable.__members__.values():
            found = resolution_table_lookup(native & 0x7, native >> 3)
            native_res = found.copy() if found else None

        return cls(
            profile=H264Profile(profile),
            level=level,
            latency=_parse_hex(tokens[5]) & 0xFF,
            frame_skipping_allowed=bool(_parse_hex(tokens[8]) & 0x1),
            native=native_res,
            cea_sup=_parse_hex(tokens[2]) & 0xFFFFFFFF,
            vesa_sup=_parse_hex(tokens[3]) & 0xFFFFFFFF,
            hh_sup=_parse_hex(tokens[4]) & 0xFFFFFFFF,
            min_slice_size=min_slice_size,
            max_slice_num=max_slice_num,
            max_slice_size_ratio=(slice_params >> 10) & 0x7,
        )

    def copy(self) -> VideoCodec:
        """Copy profile, level, latency and native mode; support masks are not copied."""
        return VideoCodec(
            profile=self.profile,
            level=self.level,
            latency=self.latency,
            native=self.native.copy() if self.native else None,
        )

    def max_bitrate_kbit(self) -> int:
        """Maximum bitrate the sink supports, in kbit/s."""
        bitrate = _BITRATE_BY_LEVEL.get(self.level)
        if bitrate is None:
            logger.warning("WfdVideoCodec: Unknown level %i", self.level)
            bitrate = 14000
        if self.profile == H264Profile.HIGH:
            bitrate = int(bitrate * 1.25)
        return bitrate

    def resolutions(self) -> list[Resolution]:
        """All supported resolutions: HH first, then CEA, then VESA."""
        found: list[Resolution] = []
        for table, mask in (
            (ResolutionTable.HH, self.hh_sup),
            (ResolutionTable.CEA, self.cea_sup),
            (ResolutionTable.VESA, self.vesa_sup),
        ):
            index = 0
            bits = mask
            while bits:
                if bits & 0x1:
                    resolution = resolution_table_lookup(table, index)
                    if resolution:
                        found.append(resolution)
                    else:
                        logger.warning(
                            "Resolution %d not found in table %s, but was in supplements 0x%X",
                            index, table.name, mask,
                        )
                bits >>= 1
                index += 1
        return found

    def descriptor_for_resolution(self, resolution: Resolution) -> str:
        """The descriptor string announcing ``resolution`` to a sink."""
        cea_sup = sup_for_resolution(ResolutionTable.CEA, resolution)
        hh_sup = sup_for_resolution(ResolutionTable.HH, resolution)
        vesa_sup = sup_for_resolution(ResolutionTable.VESA, resolution)
        frame_rate_ctrl_sup = int(self.frame_skipping_allowed) & 0x01
        slice_enc_params = 0
        return (
            f"00 00 {int(self.profile):02X} {self.level:02X} "
            f"{cea_sup:08X} {vesa_sup:08X} {hh_sup:08X} "
            f"{self.latency:02X} {self.min_slice_size:04X} "
            f"{slice_enc_params:04X} {frame_rate_ctrl_sup:02x} none none"
        )

    def dump(self) -> None:
        """Log the codec's properties at debug level."""
        logger.debug("WfdVideoCodec:")
        logger.debug(" * profile: %d", int(self.profile))
        logger.debug(" * level: %d", self.level)
        if self.native:
            logger.debug(" * native: %s", self.native)
        logger.debug("Supported resolutions:")
        for resolution in self.resolutions():
            logger.debug(" * %s", resolution)