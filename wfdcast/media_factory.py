"""Encoder pipeline configuration for a negotiated WFD stream."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any

from .audio_codec import AudioCodecType
from .encoders import H264Encoder
from .params import Params
from .video_codec import H264Profile

logger = logging.getLogger(__name__)

# Hard limit on the initial video bitrate so the wifi link is not saturated.
MAX_INITIAL_BITRATE_KBIT = 512 * 8

# Latency of the whole pipeline; the screen encoders spike after scene changes.
PIPELINE_LATENCY_MS = 500
MEDIA_BUFFER_SIZE = 65536

# Stream IDs the WFD specification assigns inside the MPEG transport stream.
VIDEO_MUX_PAD = "sink_4113"
AUDIO_MUX_PAD = "sink_4352"
STREAM_CONTROL = "streamid=0"

_BASELINE_CAPS = "video/x-h264,alignment=nal,stream-format=byte-stream,profile=baseline"
_HIGH_CAPS = "video/x-h264,alignment=nal,stream-format=byte-stream,profile=high"

_X264_PRESETS = {
    H264Profile.BASE: "Profile Baseline",
    H264Profile.HIGH: "Profile High",
}


class MediaQuirks(enum.IntFlag):
    """Limitations of the configured pipeline."""

    NONE = 0
    NO_IDR = 0x01


@dataclass(frozen=True)
class EncoderSettings:
    """How the encoding pipeline is configured for one stream."""

    encoder: H264Encoder
    quirks: MediaQuirks
    profile: H264Profile
    width: int
    height: int
    framerate: int
    interlaced: bool
    gop_size: int
    bitrate_kbit: int
    codec_caps: str
    audio_enabled: bool
    preset: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def sizefilter_caps(self) -> str:
        """Raw video caps the scaler output is restricted to."""
        return (
            f"video/x-raw,framerate={self.framerate}/1,"
            f"width={self.width},height={self.height}"
        )

    @property
    def supports_idr(self) -> bool:
        """True if key frames can be forced on request of the sink."""
        return not self.quirks & MediaQuirks.NO_IDR


def configure_media(encoder: H264Encoder, params: Params) -> EncoderSettings:
    """Work out the encoder configuration for the parameters chosen with a sink."""
    codec = params.selected_codec
    resolution = params.selected_resolution
    if codec is None:
        raise ValueError("no video codec has been selected")
    if resolution is None:
        raise ValueError("no resolution has been selected")
    if encoder is H264Encoder.NONE:
        raise ValueError("no H264 encoder is available")

    bitrate_kbit = min(codec.max_bitrate_kbit(), MAX_INITIAL_BITRATE_KBIT)
    gop_size = resolution.refresh_rate

    if resolution.interlaced:
        logger.warning(
            "Resolution should never be set to interlaced as that is not supported with all codecs."
        )

    quirks = MediaQuirks.NO_IDR if encoder is H264Encoder.VAAPIH264 else MediaQuirks.NONE

    # Fewer key frames are needed if the sink can request IDRs itself.
    if params.idr_request_capability and not quirks & MediaQuirks.NO_IDR:
        gop_size = 10 * resolution.refresh_rate

    preset: str | None = None
    if encoder is H264Encoder.OPENH264:
        profile = H264Profile.BASE
        properties: dict[str, Any] = {
            "max-bitrate": bitrate_kbit * 1024,
            "bitrate": bitrate_kbit * 1024,
            "gop-size": gop_size,
        }
    elif encoder is H264Encoder.X264:
        profile = H264Profile.HIGH if codec.profile == H264Profile.HIGH else H264Profile.BASE
        preset = _X264_PRESETS[profile]
        properties = {
            "qos": True,
            "pass": 4,  # constant bitrate
            "tune": 0x4,  # zero latency
            "speed-preset": 1,  # ultrafast
            "rc-lookahead": 0,
            "threads": 1,
            "vbv-buf-capacity": 50,
            "dct8x8": False,
            "ref": 1,
            "cabac": False,
            "sync-lookahead": 0,
            "b-adapt": False,
            "bframes": 0,
            "key-int-max": gop_size,
            "interlaced": resolution.interlaced,
            "bitrate": bitrate_kbit,
            "insert-vui": True,
            "sliced-threads": False,
        }
    else:
        profile = H264Profile.HIGH if codec.profile == H264Profile.HIGH else H264Profile.BASE
        properties = {
            "keyframe-period": gop_size,
            "bitrate": bitrate_kbit,
        }

    codec_caps = _HIGH_CAPS if profile == H264Profile.HIGH else _BASELINE_CAPS

    audio = params.selected_audio_codec
    logger.debug("An audiocodec has been selected: %s", "yes" if audio else "no")
    if audio is not None:
        # Only AAC with 2 channels at 48kHz is produced by the pipeline.
        if audio.type is not AudioCodecType.AAC or audio.modes != 0x1:
            raise ValueError(
                f"unsupported audio codec {audio.type.name} with modes 0x{audio.modes:X}"
            )

    return EncoderSettings(
        encoder=encoder,
        quirks=quirks,
        profile=profile,
        width=resolution.width,
        height=resolution.height,
        framerate=resolution.refresh_rate,
        interlaced=resolution.interlaced,
        gop_size=gop_size,
        bitrate_kbit=bitrate_kbit,
        codec_caps=codec_caps,
        audio_enabled=audio is not None,
        preset=preset,
        properties=properties,
    )


def rtpbin_settings() -> dict[str, Any]:
    """Properties of the RTP bin used for WFD media."""
    return {
        "rtp-profile": 1,  # AVP
        "do-retransmission": True,
        "ntp-time-source": 3,  # clock time
        "max-misorder-time": 50,
        "buffer-mode": 0,
        "latency": 40,
    }