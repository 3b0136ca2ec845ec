"""Unit tests for WebVTT parsing."""

import pytest

from boardmgmt.core.models.domain.transcripts import parse_timestamp, parse_vtt

VTT = """WEBVTT

1
00:00:01.000 --> 00:00:04.500
<v Ada Lovelace>Welcome everyone.</v>

2
00:00:05.000 --> 00:00:07.000
[Guest] - Thanks for having me

00:07.250 --> 00:09.000
Bob: The budget is attached
and reviewed.

00:00:10.000 --> 00:00:11.000

00:00:12.000 --> 00:00:13.000
Any other business
"""


@pytest.mark.parametrize(
    "value, expected", [("01:02:03.500", 3723.5), ("02:03.5", 123.5), ("00:00:00.000", 0.0)]
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == pytest.approx(expected)


def test_parse_vtt_detects_speakers():
    cues = parse_vtt(VTT)

    assert [c.speaker_name for c in cues] == ["Ada Lovelace", "Guest", "Bob", None]
    assert cues[0].text == "Welcome everyone."
    assert (cues[0].start, cues[0].end) == (1.0, 4.5)
    assert cues[1].text == "Thanks for having me"
    assert cues[2].text == "The budget is attached and reviewed."
    assert cues[2].start == pytest.approx(7.25)
    assert cues[3].text == "Any other business"


def test_windows_line_endings():
    cues = parse_vtt("WEBVTT\r\n\r\n00:00:01.000 --> 00:00:02.000\r\nHello\r\n")
    assert [(c.text, c.speaker_name) for c in cues] == [("Hello", None)]
