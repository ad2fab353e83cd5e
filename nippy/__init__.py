from nippy.core.exceptions import NTPError, ResolutionError, SendError, ReceiveError, MalformedReply, ConfigurationError
from nippy.core.config import NTPClientConfig
from nippy.core.instant import Instant
from nippy.protocols.NTP import NTPPacket, NTPTimeStamp, EPOCH_DELTA, timestamp_to_unix
from nippy.clients.ntp import NTPClient, request, get_unix_ntp_time

__version__ = '0.1.0'
