"""Wi-Fi Display source-side capability parsing, encoder choice, media settings and RTSP negotiation."""

__version__ = "0.1.0"

__all__ = [
    "audio_codec",
    "client",
    "encoders",
    "media_factory",
    "params",
    "resolution",
    "video_codec",
]