import time

import pytest

from nippy.core.instant import Instant
from nippy.protocols.NTP import NTPTimeStamp, EPOCH_DELTA


def test_sign_invariants():
	with pytest.raises(ValueError):
		Instant(1, -1)
	with pytest.raises(ValueError):
		Instant(-1, 1)
	with pytest.raises(ValueError):
		Instant(0, 1000000000)
	assert Instant(0, -5).subsec_nanos == -5
	assert Instant(0, 5).subsec_nanos == 5


def test_now_is_close_to_system_clock():
	before = time.time_ns()
	now = Instant.now()
	after = time.time_ns()
	assert before <= now.total_nanos() <= after


def test_from_ntp_unix_epoch():
	assert Instant.from_ntp(NTPTimeStamp(EPOCH_DELTA, 0)) == Instant(0, 0)


def test_from_ntp_half_second():
	assert Instant.from_ntp(NTPTimeStamp(3913056000, 2**31)) == Instant(1704067200, 500000000)


def test_from_ntp_before_unix_epoch():
	# half a second past the NTP epoch is still before 1970, both parts negative
	instant = Instant.from_ntp(NTPTimeStamp(0, 2**31))
	assert instant == Instant(-EPOCH_DELTA + 1, -500000000)


def test_to_ntp():
	ts = Instant(1704067200, 500000000).to_ntp()
	assert ts == NTPTimeStamp(3913056000, 2**31)


def test_to_ntp_negative_nanos():
	ts = Instant(-1, -500000000).to_ntp()
	assert ts == NTPTimeStamp(EPOCH_DELTA - 2, 2**31)


def test_to_ntp_wraps_era():
	# 2036-02-07T06:28:16Z is the first second of NTP era 1
	ts = Instant(2085978496, 0).to_ntp()
	assert ts == NTPTimeStamp(0, 0)


def test_ntp_round_trip_keeps_whole_seconds():
	instant = Instant(1518257966, 123456789)
	back = Instant.from_ntp(instant.to_ntp())
	assert back.secs == instant.secs
	assert abs(back.subsec_nanos - instant.subsec_nanos) <= 1
