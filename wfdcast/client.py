"""The WFD source side of an RTSP session with a sink (M1 to M5 handshake)."""

from __future__ import annotations

import dataclasses
import enum
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .audio_codec import AudioCodec, AudioCodecType, audio_descriptor
from .encoders import H264Encoder
from .media_factory import EncoderSettings, MediaQuirks, configure_media
from .params import Params
from .resolution import Resolution
from .video_codec import H264Profile, VideoCodec

logger = logging.getLogger(__name__)

SUPPORTED_RTSP_FEATURES = (
    "org.wfa.wfd1.0",
    "OPTIONS",
    "DESCRIBE",
    "GET_PARAMETER",
    "PAUSE",
    "PLAY",
    "SETUP",
    "SET_PARAMETER",
    "TEARDOWN",
)

WFD_URI = "rtsp://localhost/wfd1.0"
STREAM_URI = "rtsp://localhost/wfd1.0/streamid=0"
PARAMETERS_CONTENT_TYPE = "text/parameters"

# The WFD standard suggests a session timeout of 30 seconds.
SESSION_TIMEOUT = 30
KEEP_ALIVE_INTERVAL = 25

_STREAM_SUFFIX = "/streamid=0"
_TIMEOUT_SUFFIX = ";timeout=30"


class InitState(enum.IntEnum):
    """Progress of the WFD capability negotiation."""

    M0_INVALID = 0
    M1_SOURCE_QUERY_OPTIONS = 1
    M2_SINK_QUERY_OPTIONS = 2
    M3_SOURCE_GET_PARAMS = 3
    M4_SOURCE_SET_PARAMS = 4
    M5_SOURCE_TRIGGER_SETUP = 5
    DONE = 9999


@dataclass
class RtspMessage:
    """An RTSP request (``method`` set) or response (``status`` set)."""

    method: str | None = None
    uri: str = ""
    status: int | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def request(
        cls, method: str, uri: str, headers: dict[str, str] | None = None, body: str = ""
    ) -> RtspMessage:
        return cls(method=method, uri=uri, headers=dict(headers or {}), body=body)

    @classmethod
    def response(
        cls, status: int = 200, headers: dict[str, str] | None = None, body: str = ""
    ) -> RtspMessage:
        return cls(status=status, headers=dict(headers or {}), body=body)

    @property
    def is_request(self) -> bool:
        return self.method is not None

    def header(self, name: str) -> str | None:
        """Value of header ``name`` (case-insensitive), or None."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def with_header(self, name: str, value: str | None) -> RtspMessage:
        """A copy with header ``name`` replaced, or removed if ``value`` is None."""
        lowered = name.lower()
        headers = {k: v for k, v in self.headers.items() if k.lower() != lowered}
        if value is not None:
            headers[name] = value
        return dataclasses.replace(self, headers=headers)


def check_requirements(requirements: Iterable[str]) -> str:
    """Comma separated list of the required features that are not supported."""
    unsupported = [req for req in requirements if req not in SUPPORTED_RTSP_FEATURES]
    if not unsupported:
        return ""
    result = ", ".join(unsupported)
    logger.warning("WfdClient: Cannot support the following requested features: %s", result)
    return result


def _resolution_weight(resolution: Resolution) -> int:
    interlaced = int(resolution.interlaced)
    return (
        resolution.width * resolution.height * 100
        + resolution.refresh_rate // (2 if interlaced else 1)
        - interlaced
    )


def compare_resolutions(a: Resolution, b: Resolution) -> int:
    """Negative, zero or positive as ``a`` is worse than, as good as or better than ``b``."""
    return _resolution_weight(a) - _resolution_weight(b)


def _aac_stereo() -> AudioCodec:
    # AAC, 2 channels at 48kHz; the only format the media pipeline produces.
    return AudioCodec(type=AudioCodecType.AAC, modes=0x1)


def _run_now(callback: Callable[[], None]) -> None:
    callback()


class WfdClient:
    """Drives the WFD negotiation with one connected sink.

    Outgoing messages are passed through :meth:`rewrite_outgoing`, recorded in
    ``outbox`` and handed to ``send`` if given. Follow-up steps of the handshake
    are passed to ``schedule``, which runs them at once by default.
    """

    def __init__(
        self,
        send: Callable[[RtspMessage], None] | None = None,
        schedule: Callable[[Callable[[], None]], None] | None = None,
        local_address: tuple[str, int] = ("127.0.0.1", 7236),
    ) -> None:
        self.init_state = InitState.M0_INVALID
        self.params = Params()
        self.media_quirks = MediaQuirks.NONE
        self.force_key_unit: Callable[[], None] | None = None
        self.local_address = local_address
        self.outbox: list[RtspMessage] = []
        self._send_callback = send
        self._schedule = schedule or _run_now

    def _send(self, message: RtspMessage) -> None:
        message = self.rewrite_outgoing(message)
        self.outbox.append(message)
        if self._send_callback is not None:
            self._send_callback(message)

    def select_codec_and_resolution(self, profile: H264Profile) -> None:
        """Pick the video codec, resolution and audio codec to stream with."""
        codec: VideoCodec | None = None
        for item in self.params.video_codecs:
            if codec is None:
                codec = item
            if codec.profile != item.profile and item.profile == profile:
                codec = item
            if codec.profile == item.profile and item.level > codec.level:
                codec = item
        self.params.selected_codec = codec

        # The native resolution reported by some devices is useless; use FullHD.
        logger.warning(
            "WfdClient: No resolution found, falling back to standard FullHD resolution."
        )
        self.params.selected_resolution = Resolution(1920, 1080, 30, False)
        logger.debug("selected resolution %s", self.params.selected_resolution)

        if any(c.type is AudioCodecType.AAC for c in self.params.audio_codecs):
            self.params.selected_audio_codec = _aac_stereo()

    def configure_client_media(
        self,
        encoder: H264Encoder,
        force_key_unit: Callable[[], None] | None = None,
    ) -> EncoderSettings:
        """Configure the media for the negotiated parameters and remember its quirks."""
        settings = configure_media(encoder, self.params)
        self.media_quirks = settings.quirks
        self.force_key_unit = force_key_unit
        return settings

    def presentation_uri(self) -> str:
        host, port = self.local_address
        return f"rtsp://{host}:{port}/wfd1.0/streamid=0"

    def query_support(self) -> None:
        """Send M1: ask the sink whether it speaks WFD."""
        if self.init_state != InitState.M0_INVALID:
            return
        self.init_state = InitState.M1_SOURCE_QUERY_OPTIONS
        self._send(RtspMessage.request("OPTIONS", "*", {"Require": "org.wfa.wfd1.0"}))

    def trigger_method(self, method: str) -> None:
        """Ask the sink to issue ``method`` (e.g. SETUP, PLAY, TEARDOWN)."""
        if method == "SETUP" and self.init_state == InitState.M4_SOURCE_SET_PARAMS:
            self.init_state = InitState.M5_SOURCE_TRIGGER_SETUP
        self._send(
            RtspMessage.request(
                "SET_PARAMETER",
                WFD_URI,
                {"Content-Type": PARAMETERS_CONTENT_TYPE},
                f"wfd_trigger_method: {method}\r\n",
            )
        )

    def set_params(self) -> None:
        """Send M4: the chosen formats, presentation URL and RTP ports."""
        codec = self.params.selected_codec
        resolution = self.params.selected_resolution
        if codec is None or resolution is None:
            raise ValueError("no video codec and resolution have been selected")
        self.init_state = InitState.M4_SOURCE_SET_PARAMS
        body = (
            f"wfd_video_formats: {codec.descriptor_for_resolution(resolution)}\r\n"
            f"wfd_audio_codecs: {audio_descriptor(self.params.selected_audio_codec)}\r\n"
            f"wfd_presentation_URL: {self.presentation_uri()} none\r\n"
            "wfd_client_rtp_ports: RTP/AVP/UDP;unicast "
            f"{self.params.primary_rtp_port} {self.params.secondary_rtp_port} mode=play\r\n"
        )
        self._send(
            RtspMessage.request(
                "SET_PARAMETER", WFD_URI, {"Content-Type": PARAMETERS_CONTENT_TYPE}, body
            )
        )

    def _query_params(self) -> None:
        logger.debug("WFD query params")
        self.init_state = InitState.M3_SOURCE_GET_PARAMS
        self._send(
            RtspMessage.request(
                "GET_PARAMETER",
                WFD_URI,
                {"Content-Type": PARAMETERS_CONTENT_TYPE},
                self.params.m3_query_params(),
            )
        )

    def handle_response(self, response: RtspMessage) -> None:
        """Advance the handshake on a response from the sink."""
        state = self.init_state
        if state == InitState.M1_SOURCE_QUERY_OPTIONS:
            logger.debug("WfdClient: OPTIONS querying done")
            self.init_state = InitState.M2_SINK_QUERY_OPTIONS
        elif state == InitState.M3_SOURCE_GET_PARAMS:
            logger.debug("WfdClient: GET_PARAMS done")
            self.params.update_from_sink(response.body or None)
            self.select_codec_and_resolution(H264Profile.BASE)
            self._schedule(self.set_params)
        elif state == InitState.M4_SOURCE_SET_PARAMS:
            logger.debug("WfdClient: SET_PARAMS done")
            self._schedule(lambda: self.trigger_method("SETUP"))
        elif state == InitState.M5_SOURCE_TRIGGER_SETUP:
            self.init_state = InitState.DONE
            logger.debug("WfdClient: Initialization done!")

    def pre_options_request(self) -> int:
        """React to an OPTIONS request from the peer; returns the RTSP status code."""
        if self.init_state <= InitState.M2_SINK_QUERY_OPTIONS:
            if self.init_state != InitState.M2_SINK_QUERY_OPTIONS:
                # Not WFD; treat as a plain RTSP client so players can test the stream.
                logger.warning(
                    "WfdClient: Got OPTIONS before getting reply querying WFD support; "
                    "assuming normal RTSP connection."
                )
                self.params.selected_audio_codec = _aac_stereo()
                self.init_state = InitState.DONE
            else:
                self._schedule(self._query_params)
        return 200

    def params_set(self, request: RtspMessage) -> RtspMessage:
        """Handle a SET_PARAMETER request from the sink; returns the response."""
        response = RtspMessage.response(200)
        if not request.body:
            return response
        for raw_line in request.body.split("\n"):
            line = raw_line.strip()
            if not line:
                continue
            option = line.split(":", 1)[0].strip()
            if option == "wfd_idr_request":
                if self.media_quirks & MediaQuirks.NO_IDR:
                    logger.debug("Cannot force key frame as the pipeline doesn't support it!")
                elif self.force_key_unit is not None:
                    logger.debug("Forcing a keyframe!")
                    self.force_key_unit()
                else:
                    logger.debug("Cannot force key frame currently, no media!")
            else:
                logger.debug("Ignoring unknown parameter %s", option)
        return response

    def make_path_from_uri(self, method: str | None, abspath: str) -> str:
        """Media path for a request; PLAY and PAUSE address the whole media."""
        if method in ("PLAY", "PAUSE") and abspath.endswith(_STREAM_SUFFIX):
            return abspath[: -len(_STREAM_SUFFIX)]
        return abspath

    def rewrite_outgoing(self, message: RtspMessage) -> RtspMessage:
        """Advertise WFD in Public and strip the session timeout from requests."""
        public = message.header("Public")
        if public is not None:
            message = message.with_header("Public", f"org.wfa.wfd1.0, {public}")
        session = message.header("Session")
        if message.is_request and session is not None and session.endswith(_TIMEOUT_SUFFIX):
            message = message.with_header("Session", session[: -len(_TIMEOUT_SUFFIX)])
        return message

    def keep_alive_message(self) -> RtspMessage:
        """The GET_PARAMETER request sent periodically to keep the session alive."""
        return RtspMessage.request("GET_PARAMETER", STREAM_URI)