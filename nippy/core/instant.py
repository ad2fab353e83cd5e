import time

from nippy.protocols.NTP import NTPTimeStamp, EPOCH_DELTA

NANOS_PER_SEC = 1000000000


class Instant:
	"""
	A moment relative to the unix epoch (1970-01-01T00:00:00Z), stored as whole
	seconds plus the fractional part in nanoseconds.
	Moments before the epoch have both components negative.
	"""
	def __init__(self, secs, subsec_nanos):
		if abs(subsec_nanos) >= NANOS_PER_SEC:
			raise ValueError('invalid instant: subsec_nanos must be less than one second')
		if secs > 0 and subsec_nanos < 0:
			raise ValueError('invalid instant: secs was positive but subsec_nanos was negative')
		if secs < 0 and subsec_nanos > 0:
			raise ValueError('invalid instant: secs was negative but subsec_nanos was positive')
		self.secs = secs
		self.subsec_nanos = subsec_nanos

	@staticmethod
	def from_nanos(total_nanos):
		sign = -1 if total_nanos < 0 else 1
		secs, nanos = divmod(abs(total_nanos), NANOS_PER_SEC)
		return Instant(sign * secs, sign * nanos)

	@staticmethod
	def now():
		return Instant.from_nanos(time.time_ns())

	@staticmethod
	def from_ntp(ts):
		"""
		:param ts: NTP timestamp
		:type ts: NTPTimeStamp
		:return: Instant
		"""
		nanos = (ts.Fraction * NANOS_PER_SEC) // 2**32
		return Instant.from_nanos((ts.Seconds - EPOCH_DELTA) * NANOS_PER_SEC + nanos)

	def to_ntp(self):
		"""
		Seconds are wrapped into the 32 bit NTP era.
		:return: NTPTimeStamp
		"""
		secs = self.secs + EPOCH_DELTA
		nanos = self.subsec_nanos
		if nanos < 0:
			secs -= 1
			nanos += NANOS_PER_SEC
		return NTPTimeStamp(secs & 0xFFFFFFFF, (nanos * 2**32) // NANOS_PER_SEC)

	def total_nanos(self):
		return self.secs * NANOS_PER_SEC + self.subsec_nanos

	def __eq__(self, other):
		if not isinstance(other, Instant):
			return NotImplemented
		return (self.secs, self.subsec_nanos) == (other.secs, other.subsec_nanos)

	def __repr__(self):
		return 'Instant(secs=%d, subsec_nanos=%d)' % (self.secs, self.subsec_nanos)
