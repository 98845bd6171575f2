import pytest

from wfdcast.encoders import (
    AACEncoder,
    EncoderSelection,
    H264Encoder,
    get_missing_codecs,
    lookup_encoders,
)

ALL = {"openh264enc", "x264enc", "vaapih264enc", "fdkaacenc", "avenc_aac", "faac"}


def test_nothing_available():
    selection = lookup_encoders(set(), {})
    assert selection.video is H264Encoder.NONE
    assert selection.audio is AACEncoder.NONE
    assert selection.missing_video == ("openh264enc", "x264enc", "vaapih264enc")
    assert selection.missing_audio == ("fdkaacenc", "avenc_aac", "faac")


def test_last_available_wins_without_preference():
    selection = lookup_encoders(ALL, {})
    assert selection.video is H264Encoder.VAAPIH264
    assert selection.audio is AACEncoder.FAAC
    assert selection.missing_video == ()
    assert selection.missing_audio == ()


@pytest.mark.parametrize(
    "available, expected",
    [
        ({"openh264enc"}, H264Encoder.OPENH264),
        ({"openh264enc", "x264enc"}, H264Encoder.X264),
        ({"x264enc", "vaapih264enc"}, H264Encoder.VAAPIH264),
    ],
)
def test_video_preference_order(available, expected):
    assert lookup_encoders(available, {}).video is expected


def test_environment_preference_stops_search():
    env = {"NETWORK_DISPLAYS_H264_ENC": "openh264enc", "NETWORK_DISPLAYS_AAC_ENC": "fdkaacenc"}
    selection = lookup_encoders(ALL, env)
    assert selection.video is H264Encoder.OPENH264
    assert selection.audio is AACEncoder.FDK


def test_environment_preference_unavailable_is_ignored():
    env = {"NETWORK_DISPLAYS_H264_ENC": "openh264enc"}
    selection = lookup_encoders({"x264enc"}, env)
    assert selection.video is H264Encoder.X264


def test_get_missing_codecs_without_video():
    ok, video, audio = get_missing_codecs({"faac"}, {})
    assert ok is False
    assert video == ("openh264enc", "x264enc", "vaapih264enc")
    assert audio == ()


def test_get_missing_codecs_without_audio_is_still_ok():
    ok, video, audio = get_missing_codecs({"x264enc"}, {})
    assert ok is True
    assert video == ()
    assert audio == ("fdkaacenc", "avenc_aac", "faac")


def test_selected_element_names():
    selection = lookup_encoders({"x264enc", "avenc_aac"}, {})
    assert selection.video.element == "x264enc"
    assert selection.audio.element == "avenc_aac"
    assert lookup_encoders(set(), {}).video.element is None


def test_selection_default_has_nothing():
    selection = EncoderSelection()
    assert selection.has_video is False
    assert selection.has_audio is False


def test_uses_os_environ_by_default(monkeypatch):
    monkeypatch.setenv("NETWORK_DISPLAYS_AAC_ENC", "avenc_aac")
    monkeypatch.delenv("NETWORK_DISPLAYS_H264_ENC", raising=False)
    selection = lookup_encoders(ALL)
    assert selection.audio is AACEncoder.AVENC
    assert selection.video is H264Encoder.VAAPIH264