# wfdcast

The source-side logic of a Wi-Fi Display (Miracast) connection, in plain
Python with no dependencies:

- `wfdcast.resolution` – the `Resolution` value type;
- `wfdcast.video_codec` – the CEA, VESA and handheld (HH) resolution tables,
  their support bit masks and parsing of H.264 codec descriptors;
- `wfdcast.audio_codec` – parsing and writing of audio codec descriptors;
- `wfdcast.params` – the negotiated session parameters and parsing of a
  sink's `GET_PARAMETER` reply;
- `wfdcast.encoders` – choosing an H.264 and an AAC encoder element from
  the ones available;
- `wfdcast.media_factory` – the encoder and RTP bin settings for a chosen
  codec and resolution;
- `wfdcast.client` – the source's RTSP M1–M5 negotiation state machine.

## Installing

```
pip install wfdcast
```

## Parsing sink capabilities

```python
from wfdcast.params import Params

params = Params()
params.update_from_sink(
    b"wfd_client_rtp_ports: RTP/AVP/UDP;unicast 1028 0 mode=play\r\n"
    b"wfd_audio_codecs: AAC 00000001 00\r\n"
    b"wfd_video_formats: 00 00 01 01 00000081 00000000 00000000 00 0000 0000 00 none none\r\n"
)
params.primary_rtp_port              # 1028
params.audio_codecs[0].modes         # 1
params.video_codecs[0].resolutions() # resolutions from the CEA mask 0x81
```

`update_from_sink` also understands `wfd_display_edid`,
`wfd_idr_request_capability` and `microsoft_cursor`; other lines are
ignored, and malformed values are logged and skipped. A fresh `Params()`
carries a default baseline codec at 1920x1080p30, so it can be used before
any sink has answered. `Params().m3_query_params()` gives the body of the
M3 `GET_PARAMETER` request, and `copy()` returns an independent copy.

## Codecs and resolutions

```python
from wfdcast.video_codec import VideoCodec, ResolutionTable, resolution_table_lookup
from wfdcast.audio_codec import AudioCodec, audio_descriptor
from wfdcast.resolution import Resolution

codec = VideoCodec.from_descriptor(0, "01 01 00000081 00000000 00000000 00 0000 0000 00 none none")
codec.max_bitrate_kbit()
codec.descriptor_for_resolution(Resolution(1920, 1080, 30, False))
resolution_table_lookup(ResolutionTable.CEA, 7)   # Resolution(1920, 1080, 30, False)

aac = AudioCodec.from_descriptor("AAC 00000001 00")
audio_descriptor(aac)        # "AAC 00000001 00"
audio_descriptor(None)       # "none"
```

`VideoCodec.from_descriptor` and `AudioCodec.from_descriptor` raise
`ValueError` for descriptors they cannot parse.

## Choosing encoders

```python
from wfdcast.encoders import lookup_encoders, get_missing_codecs

selection = lookup_encoders({"x264enc", "fdkaacenc"}, environ={})
selection.video, selection.audio     # H264Encoder.X264, AACEncoder.FDK

ok, missing_video, missing_audio = get_missing_codecs(set(), environ={})
# ok is False; missing_video lists the H.264 encoder elements that could be installed
```

Among the available encoders the last one in the order of `H264Encoder`
(or `AACEncoder`) is taken, unless the environment variable
`NETWORK_DISPLAYS_H264_ENC` (or `NETWORK_DISPLAYS_AAC_ENC`) names one that
is available. Without an `environ` argument, `os.environ` is used.

## Configuring media

```python
from wfdcast.encoders import H264Encoder
from wfdcast.media_factory import configure_media, rtpbin_settings
from wfdcast.params import Params

settings = configure_media(H264Encoder.X264, Params())
settings.quirks, settings.bitrate_kbit, settings.gop_size, settings.preset
settings.sizefilter_caps     # "video/x-raw,framerate=30/1,width=1920,height=1080"
settings.properties          # encoder element properties
rtpbin_settings()
```

The initial bitrate is capped at 4096 kbit/s. The VAAPI encoder cannot
force key frames (`MediaQuirks.NO_IDR`). `configure_media` raises
`ValueError` if no codec, resolution or encoder is selected, or if the
selected audio codec is anything but stereo AAC.

## Negotiating with a sink

```python
from wfdcast.client import WfdClient, RtspMessage

client = WfdClient(send=print, local_address=("192.168.49.1", 7236))
client.query_support()                         # M1: OPTIONS with Require: org.wfa.wfd1.0
client.handle_response(RtspMessage.response()) # sink answered M1
client.pre_options_request()                   # sink's M2 OPTIONS; sends M3 GET_PARAMETER
```

Every outgoing message goes through `rewrite_outgoing()` (which adds
`org.wfa.wfd1.0` to `Public` and strips `;timeout=30` from the `Session`
header of requests), is appended to `client.outbox` and passed to `send`.
Follow-up steps of the handshake are passed to `schedule`, which runs them
at once by default. Pass each response from the sink to
`handle_response()`; the client moves through `InitState` up to `DONE`.

Also available: `params_set()` answers a sink's `SET_PARAMETER` request and
calls the `force_key_unit` callback given to `configure_client_media()` on
`wfd_idr_request`; `trigger_method()` asks the sink to issue a method;
`keep_alive_message()` builds the periodic keep-alive;
`make_path_from_uri()` strips `/streamid=0` for `PLAY` and `PAUSE`; and the
module functions `check_requirements()` and `compare_resolutions()`.

## What it does not do

The package opens no sockets and runs no RTSP server, no media pipeline
and no Wi-Fi P2P connection. It decides what to send, which encoders to
use and how to configure them; transporting the messages and encoding the
screen and audio are up to the caller.