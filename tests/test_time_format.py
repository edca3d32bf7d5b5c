import math

import pytest

from time_format import format_clock, format_remaining_time


@pytest.mark.parametrize("seconds, expected", [
    (900, "15:00"),
    (59.9, "00:59"),
    (61, "01:01"),
    (0, "00:00"),
    (-3, "00:00"),
    (None, "00:00"),
    (math.nan, "00:00"),
    (6000, "100:00"),
])
def test_format_clock(seconds, expected):
    assert format_clock(seconds) == expected


@pytest.mark.parametrize("seconds, expected", [
    (0, "0 seconds"),
    (1, "1 second"),
    (60, "1 minute"),
    (125, "2 minutes and 5 seconds"),
    (3661, "1 hour, 1 minute and 1 second"),
    (90000, "1 day and 1 hour"),
])
def test_format_remaining_time(seconds, expected):
    assert format_remaining_time(seconds) == expected
