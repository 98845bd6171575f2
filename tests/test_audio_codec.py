import logging

import pytest

from wfdcast.audio_codec import AudioCodec, AudioCodecType, audio_descriptor


def test_parse_aac():
    codec = AudioCodec.from_descriptor("AAC 00000001 00")
    assert codec.type is AudioCodecType.AAC
    assert codec.modes == 0x00000001
    assert codec.latency_ms == 0


@pytest.mark.parametrize("name", ["LPCM", "AAC", "AC3"])
def test_parse_all_types(name):
    assert AudioCodec.from_descriptor(f"{name} 00000003 00").type.name == name


def test_latency_is_scaled_by_five():
    low = AudioCodec.from_descriptor("LPCM 00000003 01")
    high = AudioCodec.from_descriptor("LPCM 00000003 02")
    assert high.latency_ms == 2 * low.latency_ms
    assert low.latency_ms == 5


def test_unknown_type_raises():
    with pytest.raises(ValueError):
        AudioCodec.from_descriptor("MP3 00000001 00")


def test_too_few_fields_raises():
    with pytest.raises(ValueError):
        AudioCodec.from_descriptor("AAC 00000001")


def test_descriptor_none():
    assert audio_descriptor(None) == "none"


def test_descriptor_aac_default_mode():
    codec = AudioCodec(type=AudioCodecType.AAC, modes=0x00000001)
    assert audio_descriptor(codec) == "AAC 00000001 00"


def test_descriptor_round_trip():
    codec = AudioCodec.from_descriptor("AC3 0000000F 00")
    again = AudioCodec.from_descriptor(audio_descriptor(codec))
    assert again == codec


def test_descriptor_drops_latency():
    codec = AudioCodec(type=AudioCodecType.LPCM, modes=2, latency_ms=40)
    assert AudioCodec.from_descriptor(audio_descriptor(codec)).latency_ms == 0


def test_copy_equal_and_independent():
    codec = AudioCodec(type=AudioCodecType.AAC, modes=1, latency_ms=10)
    copy = codec.copy()
    assert copy == codec
    copy.modes = 7
    assert codec.modes == 1


def test_dump_logs(caplog):
    codec = AudioCodec(type=AudioCodecType.AC3, modes=3, latency_ms=15)
    with caplog.at_level(logging.DEBUG, logger="wfdcast.audio_codec"):
        codec.dump()
    assert "WfdAudioCodec: AC3, 3, latency: 15" in caplog.text