"""Discovery of the H.264 and AAC encoder elements available for streaming."""

from __future__ import annotations

import enum
import logging
import os
from collections.abc import Container, Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

H264_ENV_VAR = "NETWORK_DISPLAYS_H264_ENC"
AAC_ENV_VAR = "NETWORK_DISPLAYS_AAC_ENC"


class H264Encoder(enum.IntEnum):
    """Supported H.264 encoder elements, in order of increasing preference."""

    OPENH264 = 0
    X264 = 1
    VAAPIH264 = 2
    NONE = 3

    @property
    def element(self) -> str | None:
        """Name of the encoder element, or None for NONE."""
        return _H264_ELEMENTS.get(self)


class AACEncoder(enum.IntEnum):
    """Supported AAC encoder elements, in order of increasing preference."""

    FDK = 0
    AVENC = 1
    FAAC = 2
    NONE = 3

    @property
    def element(self) -> str | None:
        """Name of the encoder element, or None for NONE."""
        return _AAC_ELEMENTS.get(self)


_H264_ELEMENTS = {
    H264Encoder.OPENH264: "openh264enc",
    H264Encoder.X264: "x264enc",
    H264Encoder.VAAPIH264: "vaapih264enc",
}

_AAC_ELEMENTS = {
    AACEncoder.FDK: "fdkaacenc",
    AACEncoder.AVENC: "avenc_aac",
    AACEncoder.FAAC: "faac",
}


@dataclass(frozen=True)
class EncoderSelection:
    """The chosen video and audio encoders."""

    video: H264Encoder = H264Encoder.NONE
    audio: AACEncoder = AACEncoder.NONE

    @property
    def has_video(self) -> bool:
        """True if a usable H.264 encoder was found."""
        return self.video is not H264Encoder.NONE

    @property
    def has_audio(self) -> bool:
        """True if a usable AAC encoder was found."""
        return self.audio is not AACEncoder.NONE

    @property
    def missing_video(self) -> tuple[str, ...]:
        """Video encoder elements that could be installed; empty if one was found."""
        return () if self.has_video else tuple(_H264_ELEMENTS.values())

    @property
    def missing_audio(self) -> tuple[str, ...]:
        """Audio encoder elements that could be installed; empty if one was found."""
        return () if self.has_audio else tuple(_AAC_ELEMENTS.values())


def _select(candidates, available: Container[str], preferred: str | None, none, kind: str):
    selected = none
    for encoder, element in candidates.items():
        if element not in available:
            continue
        logger.debug("Found %s for %s encoding.", element, kind)
        selected = encoder
        # Stop searching once the encoder asked for by the user is found.
        if preferred == element:
            break
    return selected


def lookup_encoders(
    available: Container[str], environ: Mapping[str, str] | None = None
) -> EncoderSelection:
    """Choose encoders among the ``available`` element names.

    The last available encoder in preference order wins, unless the
    environment names one that is available.
    """
    if environ is None:
        environ = os.environ

    video = _select(
        _H264_ELEMENTS, available, environ.get(H264_ENV_VAR), H264Encoder.NONE, "video"
    )
    if video is H264Encoder.NONE:
        logger.debug("WFD: Did not find any usable H264 video encoder, missing dependencies!")

    audio = _select(
        _AAC_ELEMENTS, available, environ.get(AAC_ENV_VAR), AACEncoder.NONE, "audio"
    )
    if audio is AACEncoder.NONE:
        logger.debug("WFD: Did not find any usable AAC audio encoder!")

    return EncoderSelection(video=video, audio=audio)


def get_missing_codecs(
    available: Container[str], environ: Mapping[str, str] | None = None
) -> tuple[bool, tuple[str, ...], tuple[str, ...]]:
    """Return whether basic codecs exist, plus the missing video and audio encoders."""
    selection = lookup_encoders(available, environ)
    return selection.has_video, selection.missing_video, selection.missing_audio