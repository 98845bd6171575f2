import dataclasses

import pytest

from wfdcast.resolution import Resolution


def test_default_is_all_zero():
    res = Resolution()
    assert (res.width, res.height, res.refresh_rate, res.interlaced) == (0, 0, 0, False)


def test_copy_is_equal_but_distinct():
    res = Resolution(1920, 1080, 30, False)
    copy = res.copy()
    assert copy == res
    assert copy is not res


def test_copy_keeps_interlaced_flag():
    res = Resolution(720, 576, 50, True)
    assert res.copy().interlaced is True


def test_resolution_is_immutable():
    res = Resolution(1280, 720, 60)
    with pytest.raises(dataclasses.FrozenInstanceError):
        res.width = 640  # type: ignore[misc]
    assert res.width == 1280
    assert res.copy() == Resolution(1280, 720, 60)


def test_str_progressive_and_interlaced():
    assert str(Resolution(1920, 1080, 30, False)) == "1920x1080 30p"
    assert str(Resolution(720, 480, 60, True)).endswith("60i")


def test_equality_depends_on_all_fields():
    assert Resolution(1920, 1080, 60, False) != Resolution(1920, 1080, 60, True)
    assert Resolution(1920, 1080, 60, False) == Resolution(1920, 1080, 60, False)