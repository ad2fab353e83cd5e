"""
Errors raised by the NTP client. Every failed query surfaces exactly one
NTPError subclass; the underlying OSError, if any, is chained as __cause__.
"""


class NTPError(Exception):
	"""
	Base class for all query failures. Catch this to treat the time as
	currently unavailable.
	"""
	pass


class ResolutionError(NTPError):
	"""The server hostname could not be resolved to an address."""
	pass


class SendError(NTPError):
	"""The request datagram could not be transmitted."""
	pass


class ReceiveError(NTPError):
	"""The transport failed while waiting for the reply."""
	pass


class MalformedReply(NTPError):
	"""
	The reply is not exactly 48 bytes, or it was rejected by the reply
	validation policy (wrong mode, kiss-o'-death).
	"""
	pass


class ConfigurationError(Exception):
	"""Invalid client configuration."""
	pass
