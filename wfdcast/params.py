"""Negotiated WFD session parameters and parsing of a sink's M3 reply."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .audio_codec import AudioCodec
from .resolution import Resolution
from .video_codec import VideoCodec

logger = logging.getLogger(__name__)

_M3_MANDATORY = (
    "wfd_client_rtp_ports",
    "wfd_audio_codecs",
    "wfd_video_formats",
)

_M3_OPTIONAL = (
    "wfd_3d_video_formats",
    "wfd_display_edid",
    "wfd_coupled_sink",
    "wfd_I2C",
    "wfd_standby_resume_capability",
    "wfd_connector_type",
    "wfd_uibc_capability",
    "wfd2_audio_codecs",
    "wfd2_video_codecs",
    "wfd2_aux_stream_formats",
    "wfd2_buffer_length",
    "wfd2_audio_playback_status",
    "wfd2_video_playback_status",
    "wfd2_cta_datablock_collection",
)

_M3_QUERY_EXTRA = (
    "wfd_display_edid",
    "wfd_idr_request_capability",
    "microsoft_cursor",
)

# Native CEA mode 7 (1920x1080p30), baseline profile, level 3.1.
_DEFAULT_NATIVE = 7 << 3
_DEFAULT_VIDEO_DESCRIPTOR = "01 01 00000081 00000000 00000000 00 0000 0000 00 none none"

_HEX_NUMBER = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]+)")
_DEC_NUMBER = re.compile(r"\s*([+-]?)([0-9]+)")


def _parse_number(pattern: re.Pattern[str], text: str, base: int) -> int:
    match = pattern.match(text)
    if not match:
        return 0
    value = int(match.group(2), base)
    return -value if match.group(1) == "-" else value


def _parse_hex(text: str) -> int:
    """Leading hexadecimal number of ``text``; 0 if there is none."""
    return _parse_number(_HEX_NUMBER, text, 16)


def _parse_dec(text: str) -> int:
    """Leading decimal number of ``text``; 0 if there is none."""
    return _parse_number(_DEC_NUMBER, text, 10)


def _default_codec() -> VideoCodec:
    return VideoCodec.from_descriptor(_DEFAULT_NATIVE, _DEFAULT_VIDEO_DESCRIPTOR)


@dataclass
class Params:
    """Capabilities reported by a sink and the choices made for the stream."""

    profile: str | None = None
    primary_rtp_port: int = 16384
    secondary_rtp_port: int = 0
    edid: bytes | None = None

    idr_request_capability: bool = False
    ms_cursor_capability: bool = False
    ms_cursor_width: int = 0
    ms_cursor_height: int = 0
    ms_cursor_port: int = 0

    selected_codec: VideoCodec | None = None
    selected_resolution: Resolution | None = None
    selected_audio_codec: AudioCodec | None = None

    video_codecs: list[VideoCodec] = field(default_factory=list)
    audio_codecs: list[AudioCodec] = field(default_factory=list)

    def __post_init__(self) -> None:
        # A default codec makes plain RTSP clients usable; a sink's reply replaces it.
        if not self.video_codecs and self.selected_codec is None:
            basic = _default_codec()
            self.video_codecs.append(basic)
            self.selected_codec = basic
            if self.selected_resolution is None and basic.native is not None:
                self.selected_resolution = basic.native.copy()

    def copy(self) -> Params:
        """Return an independent copy of these parameters."""
        return Params(
            profile=self.profile,
            primary_rtp_port=self.primary_rtp_port,
            secondary_rtp_port=self.secondary_rtp_port,
            edid=self.edid,
            idr_request_capability=self.idr_request_capability,
            ms_cursor_capability=self.ms_cursor_capability,
            ms_cursor_width=self.ms_cursor_width,
            ms_cursor_height=self.ms_cursor_height,
            ms_cursor_port=self.ms_cursor_port,
            selected_codec=self.selected_codec.copy() if self.selected_codec else None,
            selected_resolution=(
                self.selected_resolution.copy() if self.selected_resolution else None
            ),
            selected_audio_codec=(
                self.selected_audio_codec.copy() if self.selected_audio_codec else None
            ),
            video_codecs=[codec.copy() for codec in self.video_codecs],
            audio_codecs=[codec.copy() for codec in self.audio_codecs],
        )

    def m3_query_params(self) -> str:
        """Body of the M3 GET_PARAMETER request, one name per CRLF-terminated line."""
        return "\r\n".join((*_M3_MANDATORY, *_M3_QUERY_EXTRA, ""))

    def update_from_sink(self, body: bytes | str | None) -> None:
        """Update from the ``name: value`` lines of a sink's parameter reply."""
        if body is None:
            return
        if isinstance(body, bytes):
            body = body.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        else:
            body = body.split("\0", 1)[0]

        for raw_line in body.split("\n"):
            line = raw_line.strip()
            if not line:
                continue
            parts = line.split(":", 1)
            if len(parts) != 2:
                continue
            option, value = parts[0].strip(), parts[1].strip()
            handler = self._HANDLERS.get(option)
            if handler is None:
                logger.debug("WfdParams: Not handling option %s", option)
            else:
                handler(self, value)

    def _set_rtp_ports(self, value: str) -> None:
        fields = value.split(" ")
        if len(fields) != 4:
            logger.warning("WfdParams: Invalid value wfd_client_rtp_ports: %s", value)
            return
        if fields[0] != "RTP/AVP/UDP;unicast":
            logger.warning("WfdParams: Invalid profile: %s", fields[0])
            return
        if fields[3] != "mode=play":
            logger.warning("WfdParams: Invalid mode: %s", fields[3])
            return
        self.profile = fields[0]
        self.primary_rtp_port = _parse_dec(fields[1]) & 0xFFFF
        self.secondary_rtp_port = _parse_dec(fields[2]) & 0xFFFF

    def _set_video_formats(self, value: str) -> None:
        self.selected_codec = None
        self.selected_resolution = None
        self.video_codecs = []
        if value == "none":
            return
        fields = value.split(" ", 2)
        if len(fields) != 3:
            logger.warning("WfdParams: wfd_video_formats is invalid: %s", value)
            return
        native = _parse_hex(fields[0]) & 0xFFFF
        # fields[1] is the preferred display mode (WFD 1.0 only); ignored.
        for descriptor in fields[2].split(","):
            descriptor = descriptor.strip()
            try:
                codec = VideoCodec.from_descriptor(native, descriptor)
            except ValueError:
                logger.warning("WfdParams: Could not parse codec descriptor: %s", descriptor)
                continue
            logger.debug("Add codec to params:")
            codec.dump()
            self.video_codecs.append(codec)

    def _set_audio_codecs(self, value: str) -> None:
        self.selected_audio_codec = None
        self.audio_codecs = []
        if value == "none":
            return
        for descriptor in value.split(","):
            descriptor = descriptor.strip()
            try:
                codec = AudioCodec.from_descriptor(descriptor)
            except ValueError:
                logger.warning("WfdParams: Could not parse codec descriptor: %s", descriptor)
                continue
            logger.debug("Add audio codec to params:")
            codec.dump()
            self.audio_codecs.append(codec)

    def _set_display_edid(self, value: str) -> None:
        self.edid = None
        if value == "none":
            return
        fields = value.split(" ", 1)
        if len(fields) != 2:
            logger.warning("WfdParams: Invalid EDID specifier: %s", value)
            return
        blocks = _parse_dec(fields[0])
        hex_data = fields[1]
        expected = 128 * 2 * blocks
        if expected != len(hex_data):
            logger.warning(
                "WfdParams: EDID hex string should be %d characters but is %d characters",
                expected, len(hex_data),
            )
            return
        self.edid = bytes(
            _parse_hex(hex_data[pos:pos + 2]) & 0xFF for pos in range(0, len(hex_data), 2)
        )

    def _set_idr_request_capability(self, value: str) -> None:
        self.idr_request_capability = value == "1"

    def _set_ms_cursor(self, value: str) -> None:
        self.ms_cursor_capability = False
        if value == "none":
            return
        fields = value.split(" ", 4)
        if len(fields) != 4:
            logger.warning("WfdParams: Unknown microsoft_cursor value %s", value)
            return
        # fields[0] is "none" or "full" (XOR blending, which is not supported).
        self.ms_cursor_width = _parse_hex(fields[1]) & 0xFFFF
        self.ms_cursor_height = _parse_hex(fields[2]) & 0xFFFF
        self.ms_cursor_port = _parse_hex(fields[3]) & 0xFFFF
        if self.ms_cursor_width >= 32 and self.ms_cursor_height >= 32:
            self.ms_cursor_capability = True
        else:
            logger.warning('WfdParams: microsoft_cursor extension has odd values: "%s"', value)

    _HANDLERS = {
        "wfd_client_rtp_ports": _set_rtp_ports,
        "wfd_video_formats": _set_video_formats,
        "wfd_audio_codecs": _set_audio_codecs,
        "wfd_display_edid": _set_display_edid,
        "wfd_idr_request_capability": _set_idr_request_capability,
        "microsoft_cursor": _set_ms_cursor,
    }