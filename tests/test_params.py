import pytest

from wfdcast.audio_codec import AudioCodec, AudioCodecType
from wfdcast.params import Params
from wfdcast.resolution import Resolution
from wfdcast.video_codec import H264Profile


VIDEO_LINE = (
    "wfd_video_formats: 40 00 02 04 0001DEFF 053C7FFF 00000FFF 00 0000 0000 11 none none, "
    "01 04 0001DEFF 053C7FFF 00000FFF 00 0000 0000 11 none none\r\n"
)


@pytest.fixture
def params():
    return Params()


def test_defaults(params):
    assert params.primary_rtp_port == 16384
    assert params.secondary_rtp_port == 0
    assert len(params.video_codecs) == 1
    assert params.selected_codec is params.video_codecs[0]
    assert params.selected_resolution == Resolution(1920, 1080, 30, False)
    assert params.audio_codecs == []
    assert params.selected_audio_codec is None
    assert params.edid is None


def test_m3_query_params(params):
    assert params.m3_query_params() == (
        "wfd_client_rtp_ports\r\n"
        "wfd_audio_codecs\r\n"
        "wfd_video_formats\r\n"
        "wfd_display_edid\r\n"
        "wfd_idr_request_capability\r\n"
        "microsoft_cursor\r\n"
    )


def test_none_body_keeps_values(params):
    params.update_from_sink(None)
    assert params.primary_rtp_port == 16384
    assert len(params.video_codecs) == 1


def test_rtp_ports(params):
    params.update_from_sink(b"wfd_client_rtp_ports: RTP/AVP/UDP;unicast 19000 19002 mode=play\r\n")
    assert params.profile == "RTP/AVP/UDP;unicast"
    assert params.primary_rtp_port == 19000
    assert params.secondary_rtp_port == 19002


@pytest.mark.parametrize(
    "line",
    [
        "wfd_client_rtp_ports: RTP/AVP/UDP;unicast 19000 0 mode=pause",
        "wfd_client_rtp_ports: RTP/AVP/TCP;unicast 19000 0 mode=play",
        "wfd_client_rtp_ports: RTP/AVP/UDP;unicast 19000 mode=play",
    ],
)
def test_rtp_ports_invalid_ignored(params, line):
    params.update_from_sink(line)
    assert params.profile is None
    assert params.primary_rtp_port == 16384


def test_str_body_accepted(params):
    params.update_from_sink("wfd_client_rtp_ports: RTP/AVP/UDP;unicast 1234 0 mode=play")
    assert params.primary_rtp_port == 1234


def test_video_formats_none_clears(params):
    params.update_from_sink(b"wfd_video_formats: none\r\n")
    assert params.video_codecs == []
    assert params.selected_codec is None


def test_video_formats_bad_descriptor_skipped(params):
    params.update_from_sink(
        b"wfd_video_formats: 00 00 07 01 0001DEFF 00000000 00000000 00 0000 0000 00 none none, bogus\r\n"
    )
    assert len(params.video_codecs) == 0


def test_audio_codecs(params):
    params.selected_audio_codec = AudioCodec(AudioCodecType.AAC, 1)
    params.update_from_sink(b"wfd_audio_codecs: AAC 00000001 00, LPCM 00000002 00\r\n")
    assert [codec.type for codec in params.audio_codecs] == [
        AudioCodecType.AAC,
        AudioCodecType.LPCM,
    ]
    assert params.audio_codecs[0].modes == 0x00000001
    assert params.selected_audio_codec is None


def test_audio_codecs_invalid_entry_skipped(params):
    params.update_from_sink(b"wfd_audio_codecs: MP3 00000001 00, AC3 00000001 00\r\n")
    assert [codec.type for codec in params.audio_codecs] == [AudioCodecType.AC3]


def test_edid(params):
    hex_data = "00ff" * 64
    params.update_from_sink(f"wfd_display_edid: 0001 {hex_data}\r\n".encode())
    assert params.edid == bytes.fromhex(hex_data)
    assert len(params.edid) == 128


def test_edid_wrong_length(params):
    params.update_from_sink(b"wfd_display_edid: 0001 00ff\r\n")
    assert params.edid is None


def test_edid_none_clears(params):
    params.edid = b"\x01"
    params.update_from_sink(b"wfd_display_edid: none\r\n")
    assert params.edid is None


@pytest.mark.parametrize("value, expected", [("1", True), ("0", False), ("none", False)])
def test_idr_request_capability(params, value, expected):
    params.update_from_sink(f"wfd_idr_request_capability: {value}\r\n")
    assert params.idr_request_capability is expected


def test_ms_cursor(params):
    params.update_from_sink(b"microsoft_cursor: none 40 40 1f90\r\n")
    assert params.ms_cursor_capability is True
    assert params.ms_cursor_width == 0x40
    assert params.ms_cursor_height == 0x40
    assert params.ms_cursor_port == 0x1F90


def test_ms_cursor_too_small(params):
    params.update_from_sink(b"microsoft_cursor: full 10 40 1f90\r\n")
    assert params.ms_cursor_capability is False


def test_ms_cursor_wrong_field_count(params):
    params.update_from_sink(b"microsoft_cursor: none 40 40\r\n")
    assert params.ms_cursor_capability is False
    assert params.ms_cursor_width == 0


def test_lines_without_colon_and_unknown_ignored(params):
    params.update_from_sink(b"garbage line\r\n\r\nwfd_coupled_sink: none\r\n")
    assert params.primary_rtp_port == 16384
    assert len(params.video_codecs) == 1


def test_body_truncated_at_nul(params):
    params.update_from_sink(
        b"wfd_idr_request_capability: 1\r\n\0wfd_client_rtp_ports: RTP/AVP/UDP;unicast 5 0 mode=play"
    )
    assert params.idr_request_capability is True
    assert params.primary_rtp_port == 16384


def test_copy_is_independent(params):
    params.update_from_sink(
        b"wfd_client_rtp_ports: RTP/AVP/UDP;unicast 19000 19002 mode=play\r\n"
        b"wfd_audio_codecs: AAC 00000001 00\r\n"
        + VIDEO_LINE.encode()
    )
    copy = params.copy()
    assert copy.primary_rtp_port == params.primary_rtp_port
    assert copy.secondary_rtp_port == params.secondary_rtp_port
    assert [c.profile for c in copy.video_codecs] == [c.profile for c in params.video_codecs]
    assert copy.audio_codecs == params.audio_codecs
    copy.audio_codecs.clear()
    copy.video_codecs.clear()
    assert len(params.audio_codecs) == 1
    assert len(params.video_codecs) == 2


def test_copy_keeps_selection(params):
    copy = params.copy()
    assert copy.selected_resolution == params.selected_resolution
    assert copy.selected_codec is not params.selected_codec
    assert copy.selected_codec.profile == params.selected_codec.profile