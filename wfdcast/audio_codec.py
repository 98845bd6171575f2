"""Audio codec capabilities as exchanged in WFD ``wfd_audio_codecs``."""

from __future__ import annotations

import dataclasses
import enum
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_HEX_NUMBER = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]+)")


def _parse_hex(text: str) -> int:
    """Parse the leading hexadecimal number of ``text``; 0 if there is none."""
    match = _HEX_NUMBER.match(text)
    if not match:
        return 0
    value = int(match.group(2), 16)
    return -value if match.group(1) == "-" else value


class AudioCodecType(enum.Enum):
    LPCM = 0
    AAC = 1
    AC3 = 2


@dataclass
class AudioCodec:
    """One audio codec entry: type, supported mode bits and latency."""

    type: AudioCodecType = AudioCodecType.LPCM
    modes: int = 0
    latency_ms: int = 0

    @classmethod
    def from_descriptor(cls, descr: str) -> AudioCodec:
        """Parse ``"<TYPE> <modes> <latency>"``; raises ValueError if invalid."""
        tokens = descr.split(" ", 2)
        if len(tokens) < 3:
            raise ValueError(f"audio codec descriptor has too few fields: {descr!r}")
        try:
            codec_type = AudioCodecType[tokens[0]]
        except KeyError:
            raise ValueError(f"unknown audio codec type {tokens[0]!r}") from None
        return cls(
            type=codec_type,
            modes=_parse_hex(tokens[1]) & 0xFFFFFFFF,
            latency_ms=_parse_hex(tokens[2]) * 5,
        )

    def copy(self) -> AudioCodec:
        """Return an independent copy."""
        return dataclasses.replace(self)

    def dump(self) -> str:
        """Describe the codec for debugging, log it and return the text."""
        text = f"WfdAudioCodec: {self.type.name}, {self.modes}, latency: {self.latency_ms}"
        logger.debug("%s", text)
        return text


def audio_descriptor(codec: AudioCodec | None) -> str:
    """The descriptor announcing ``codec`` to a sink, or ``"none"``."""
    if codec is None:
        return "none"
    return f"{codec.type.name} {codec.modes:08X} {0:02X}"