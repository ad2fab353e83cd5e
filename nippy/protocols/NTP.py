#https://tools.ietf.org/html/rfc5905
import io
import enum
import math
import datetime
import ipaddress

from nippy.protocols import ProtocolBase
from nippy.core.exceptions import MalformedReply

"""
Client side of the NTP wire format. Every field is kept in its raw wire form
so that a decoded packet serializes back to the exact same 48 bytes.
Interpreted views (seconds, stratum category, reference clock) are methods.
"""

#seconds between 1900-01-01 (NTP epoch) and 1970-01-01 (unix epoch)
EPOCH_DELTA = 2208988800
NTP_PORT = 123

NTPEpoch = datetime.datetime(1900,1,1)

NTPStratumReferenceClock = {
	'GOES' : 'Geosynchronous Orbit Environment Satellite',
	'GPS'  : 'Global Position System',
	'GAL'  : 'Galileo Positioning System',
	'PPS'  : 'Generic pulse-per-second',
	'IRIG' : 'Inter-Range Instrumentation Group',
	'WWVB' : 'LF Radio WWVB Ft. Collins, CO 60 kHz',
	'DCF'  : 'LF Radio DCF77 Mainflingen, DE 77.5 kHz',
	'HBG'  : 'LF Radio HBG Prangins, HB 75 kHz',
	'MSF'  : 'LF Radio MSF Anthorn, UK 60 kHz',
	'JJY'  : 'LF Radio JJY Fukushima, JP 40 kHz, Saga, JP 60 kHz',
	'LORC' : 'MF Radio LORAN C station, 100 kHz',
	'TDF'  : 'MF Radio Allouis, FR 162 kHz',
	'CHU'  : 'HF Radio CHU Ottawa, Ontario',
	'WWV'  : 'HF Radio WWV Ft. Collins, CO',
	'WWVH' : 'HF Radio WWVH Kauai, HI',
	'NIST' : 'NIST telephone modem',
	'ACTS' : 'NIST telephone modem',
	'USNO' : 'USNO telephone modem',
	'PTB'  : 'European telephone modem',
}

class NTPLeapIndicator(enum.Enum):
	NO_WARNING = 0
	LAST_61    = 1
	LAST_59    = 2
	UNKNOWN    = 3

class NTPMode(enum.Enum):
	RESERVED = 0
	SYMMETRIC_ACTIVE = 1
	SYMMETRIC_PASSIVE = 2
	CLIENT = 3
	SERVER = 4
	BROADCAST = 5
	NTP_CONTROL_MESSAGE = 6
	RESERVED_2 = 7

class NTPStratum(enum.Enum):
	UNSPECIFIED = 0
	PRIMARY_SERVER = 1
	SECONDARY_SERVER = 2
	UNSYNCHRONIZED = 16
	#reserved 17-255
	RESERVED = 17

	@staticmethod
	def from_value(value):
		"""
		Maps the raw 8 bit stratum to its category
		:param value: stratum as read from the wire
		:type value: int
		:return: NTPStratum
		"""
		if value in (0, 1, 16):
			return NTPStratum(value)
		if 2 <= value <= 15:
			return NTPStratum.SECONDARY_SERVER
		return NTPStratum.RESERVED

class NTPShort():
	def __init__(self, seconds = 0, fraction = 0):
		self.Seconds  = seconds
		self.Fraction = fraction

	@staticmethod
	def from_bytes(bbuff):
		return NTPShort.from_buffer(io.BytesIO(bbuff))

	@staticmethod
	def from_buffer(buff):
		s = NTPShort()
		s.Seconds  = int.from_bytes(buff.read(2), byteorder='big', signed = False)
		s.Fraction = int.from_bytes(buff.read(2), byteorder='big', signed = False)
		return s

	def to_bytes(self):
		t  = self.Seconds.to_bytes(2, byteorder = 'big', signed = False)
		t += self.Fraction.to_bytes(2, byteorder = 'big', signed = False)
		return t

	@staticmethod
	def from_float(f):
		frac, tot = math.modf(f)
		return NTPShort(int(tot), int(frac*(2**16)))

	def total(self):
		return float(self.Seconds) + float(self.Fraction / 2**16 )

	def __eq__(self, other):
		if not isinstance(other, NTPShort):
			return NotImplemented
		return (self.Seconds, self.Fraction) == (other.Seconds, other.Fraction)

	def __repr__(self):
		return 'NTPShort(%d, %d)' % (self.Seconds, self.Fraction)

class NTPTimeStamp():
	def __init__(self, seconds = 0, fraction = 0):
		self.Seconds  = seconds
		self.Fraction = fraction

	@staticmethod
	def from_bytes(bbuff):
		return NTPTimeStamp.from_buffer(io.BytesIO(bbuff))

	@staticmethod
	def from_buffer(buff):
		s = NTPTimeStamp()
		s.Seconds = int.from_bytes(buff.read(4), byteorder='big', signed = False)
		s.Fraction = int.from_bytes(buff.read(4), byteorder='big', signed = False)
		return s

	def to_bytes(self):
		t  = self.Seconds.to_bytes(4, byteorder = 'big', signed = False)
		t += self.Fraction.to_bytes(4, byteorder = 'big', signed = False)
		return t

	@staticmethod
	def fromDatetime(dt):
		"""
		dt is expected to be a naive datetime in UTC
		"""
		delta = dt - NTPEpoch
		seconds = delta.days * 86400 + delta.seconds
		fraction = (delta.microseconds * 2**32) // 1000000
		return NTPTimeStamp(seconds & 0xFFFFFFFF, fraction)

	def total(self):
		return float(self.Seconds) + float(self.Fraction / 2**32 )

	def toDatetime(self):
		return NTPEpoch + datetime.timedelta(seconds = self.Seconds, microseconds = (self.Fraction * 1000000) // 2**32)

	def to_unix(self):
		"""
		Whole seconds since the unix epoch. The fraction is dropped, not rounded.
		Timestamps before 1970 yield negative values.
		:return: int
		"""
		return self.Seconds - EPOCH_DELTA

	def is_zero(self):
		return self.Seconds == 0 and self.Fraction == 0

	def __eq__(self, other):
		if not isinstance(other, NTPTimeStamp):
			return NotImplemented
		return (self.Seconds, self.Fraction) == (other.Seconds, other.Fraction)

	def __repr__(self):
		return 'NTPTimeStamp(%d, %d)' % (self.Seconds, self.Fraction)


def timestamp_to_unix(ts):
	"""
	Converts an NTP timestamp to a unix timestamp (seconds, truncated)
	:param ts: NTP timestamp
	:type ts: NTPTimeStamp
	:return: int
	"""
	return ts.to_unix()


class NTPPacket(ProtocolBase):
	PACKET_SIZE = 48

	def __init__(self):
		self.LI = None
		self.VN = None
		self.Mode = None
		self.Stratum = None
		self.Poll = None
		self.Precision = None
		self.RootDelay = None
		self.RootDispersion = None
		self.ReferenceID = None
		self.ReferenceTimestamp = None
		self.OriginTimestamp = None
		self.ReceiveTimestamp = None
		self.TransmitTimestamp = None

	@staticmethod
	async def from_streamreader(reader):
		data = await reader.read()
		return NTPPacket.from_bytes(data)

	@staticmethod
	def from_bytes(bbuff):
		if len(bbuff) != NTPPacket.PACKET_SIZE:
			raise MalformedReply('NTP packet must be %d bytes, got %d' % (NTPPacket.PACKET_SIZE, len(bbuff)))
		return NTPPacket.from_buffer(io.BytesIO(bbuff))

	@staticmethod
	def from_buffer(buff):
		data = buff.read(NTPPacket.PACKET_SIZE)
		if len(data) != NTPPacket.PACKET_SIZE:
			raise MalformedReply('NTP packet must be %d bytes, got %d' % (NTPPacket.PACKET_SIZE, len(data)))
		buff = io.BytesIO(data)

		ntp = NTPPacket()
		t = int.from_bytes(buff.read(1), byteorder='big', signed = False)
		ntp.LI = NTPLeapIndicator((t & 0xc0) >> 6)
		ntp.VN = (t & 0x38) >> 3
		ntp.Mode = NTPMode((t & 0x7))
		ntp.Stratum = int.from_bytes(buff.read(1), byteorder='big', signed = False)
		ntp.Poll = int.from_bytes(buff.read(1), byteorder='big', signed = True)
		ntp.Precision = int.from_bytes(buff.read(1), byteorder='big', signed = True)
		ntp.RootDelay = NTPShort.from_buffer(buff)
		ntp.RootDispersion = NTPShort.from_buffer(buff)
		ntp.ReferenceID = buff.read(4)
		ntp.ReferenceTimestamp = NTPTimeStamp.from_buffer(buff)
		ntp.OriginTimestamp = NTPTimeStamp.from_buffer(buff)
		ntp.ReceiveTimestamp = NTPTimeStamp.from_buffer(buff)
		ntp.TransmitTimestamp = NTPTimeStamp.from_buffer(buff)
		return ntp

	@staticmethod
	def construct(li = NTPLeapIndicator.NO_WARNING, vn = 3, mode = NTPMode.CLIENT, stratum = 0, poll = 0,
				precision = 0, root_delay = None, root_dispersion = None, reference_id = b'\x00' * 4,
				reference_ts = None, origin_ts = None, receive_ts = None, transmit_ts = None):
		ntp = NTPPacket()
		ntp.LI = li
		ntp.VN = vn
		ntp.Mode = mode
		ntp.Stratum = stratum
		ntp.Poll = poll
		ntp.Precision = precision
		ntp.RootDelay = root_delay if root_delay is not None else NTPShort()
		ntp.RootDispersion = root_dispersion if root_dispersion is not None else NTPShort()
		ntp.ReferenceID = reference_id
		ntp.ReferenceTimestamp = reference_ts if reference_ts is not None else NTPTimeStamp()
		ntp.OriginTimestamp = origin_ts if origin_ts is not None else NTPTimeStamp()
		ntp.ReceiveTimestamp = receive_ts if receive_ts is not None else NTPTimeStamp()
		ntp.TransmitTimestamp = transmit_ts if transmit_ts is not None else NTPTimeStamp()
		return ntp

	@staticmethod
	def construct_request(version = 3, transmit_timestamp = None):
		"""
		Creates a client mode request. Everything but the version and mode is zero,
		unless a transmit timestamp is supplied.
		:param version: NTP version number to put in the header
		:type version: int
		:param transmit_timestamp: Optional client transmit time
		:type transmit_timestamp: NTPTimeStamp
		:return: NTPPacket
		"""
		return NTPPacket.construct(vn = version, mode = NTPMode.CLIENT, transmit_ts = transmit_timestamp)

	@staticmethod
	def construct_reply(originTS, dt, refid, stratum = 2, version = 3):
		"""
		Creates a server mode packet stamped with dt (naive UTC datetime)
		"""
		if isinstance(refid, ipaddress.IPv4Address):
			refid = refid.packed
		elif isinstance(refid, str):
			refid = refid.encode().ljust(4, b'\x00')
		ts = NTPTimeStamp.fromDatetime(dt)
		return NTPPacket.construct(
			vn = version,
			mode = NTPMode.SERVER,
			stratum = stratum,
			poll = 4,
			precision = -20,
			root_delay = NTPShort.from_float(0.015),
			root_dispersion = NTPShort.from_float(0.03),
			reference_id = refid,
			reference_ts = ts,
			origin_ts = originTS,
			receive_ts = ts,
			transmit_ts = ts,
		)

	def to_bytes(self):
		temp  = self.LI.value << 6
		temp |= self.VN << 3
		temp |= self.Mode.value

		t  = temp.to_bytes(1, byteorder = 'big', signed = False)
		t += self.Stratum.to_bytes(1, byteorder = 'big', signed = False)
		t += self.Poll.to_bytes(1, byteorder = 'big', signed = True)
		t += self.Precision.to_bytes(1, byteorder = 'big', signed = True)
		t += self.RootDelay.to_bytes()
		t += self.RootDispersion.to_bytes()
		t += bytes(self.ReferenceID)
		t += self.ReferenceTimestamp.to_bytes()
		t += self.OriginTimestamp.to_bytes()
		t += self.ReceiveTimestamp.to_bytes()
		t += self.TransmitTimestamp.to_bytes()

		return t

	def poll_interval(self):
		return 2.0 ** self.Poll

	def precision_seconds(self):
		return 2.0 ** self.Precision

	def stratum_type(self):
		return NTPStratum.from_value(self.Stratum)

	def is_kiss_of_death(self):
		return self.Stratum == 0

	def kiss_code(self):
		"""
		The four ASCII characters in the reference id of a stratum 0 reply
		"""
		return self.ReferenceID.decode('ascii', errors = 'replace').rstrip('\x00')

	def reference(self):
		"""
		Reference id in its interpreted form: a kiss code or clock source for stratum 0 and 1,
		an IPv4 address of the upstream server for stratum 2-15, raw bytes otherwise.
		"""
		stratum = self.stratum_type()
		if stratum in (NTPStratum.UNSPECIFIED, NTPStratum.PRIMARY_SERVER):
			return self.kiss_code()
		elif stratum == NTPStratum.SECONDARY_SERVER:
			#IPv6 upstreams are hashed into these 4 bytes, which still parse as an address
			return ipaddress.IPv4Address(self.ReferenceID)
		return self.ReferenceID

	def validate_reply(self, require_server_mode = True, reject_kiss_of_death = True):
		"""
		Checks the decoded packet against the client's reply policy.
		:param require_server_mode: Reject anything but mode 4 (server)
		:type require_server_mode: bool
		:param reject_kiss_of_death: Reject stratum 0 replies
		:type reject_kiss_of_death: bool
		:return: None
		"""
		if require_server_mode and self.Mode != NTPMode.SERVER:
			raise MalformedReply('Reply mode is %s, expected %s' % (self.Mode.name, NTPMode.SERVER.name))
		if reject_kiss_of_death and self.is_kiss_of_death():
			raise MalformedReply('Kiss-o\'-Death reply received, code: %s' % self.kiss_code())

	def __repr__(self):
		t  = '== NTP Packet ==\r\n'
		t += 'LI : %s\r\n' % repr(self.LI)
		t += 'VN : %d\r\n' % self.VN
		t += 'Mode : %s\r\n' % repr(self.Mode)
		t += 'Stratum : %d (%s)\r\n' % (self.Stratum, self.stratum_type().name)
		t += 'Poll : %f\r\n' % self.poll_interval()
		t += 'Precision : %f\r\n' % self.precision_seconds()
		t += 'RootDelay : %s\r\n' % str(self.RootDelay.total())
		t += 'RootDispersion : %s\r\n' % str(self.RootDispersion.total())
		reference = self.reference()
		if self.stratum_type() == NTPStratum.PRIMARY_SERVER and reference in NTPStratumReferenceClock:
			t += 'ReferenceID : %s\r\n' % NTPStratumReferenceClock[reference]
		else:
			t += 'ReferenceID : %s\r\n' % repr(reference)
		t += 'ReferenceTimestamp : %s\r\n' % self.ReferenceTimestamp.toDatetime().isoformat()
		t += 'OriginTimestamp : %s\r\n' % self.OriginTimestamp.toDatetime().isoformat()
		t += 'ReceiveTimestamp : %s\r\n' % self.ReceiveTimestamp.toDatetime().isoformat()
		t += 'TransmitTimestamp : %s\r\n' % self.TransmitTimestamp.toDatetime().isoformat()

		return t
