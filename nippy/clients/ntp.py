import random
import asyncio
import logging

from nippy.protocols.NTP import NTPPacket, timestamp_to_unix
from nippy.core.config import NTPClientConfig, parse_server_address
from nippy.core.udpwrapper import UDPClient
from nippy.core.exceptions import ConfigurationError, ResolutionError

logger = logging.getLogger('nippy')


class NTPClient:
	"""
	Stateless NTP client. Every call to request() opens its own socket, performs a single
	request/response exchange and closes the socket again. There is no timeout and no retry,
	wrap the call in asyncio.wait_for if bounded latency is needed.
	"""
	def __init__(self, config = None, transport = UDPClient):
		self.config = config if config is not None else NTPClientConfig.default()
		self.transport = transport

	def select_server(self, server = None):
		"""
		Picks the target: the override if supplied, otherwise a random pool member
		:param server: Optional server override
		:type server: str or tuple
		:return: tuple of (host, port)
		"""
		if server is not None:
			try:
				return parse_server_address(server)
			except ConfigurationError as e:
				raise ResolutionError('Invalid server %s: %s' % (repr(server), e)) from e
		return random.choice(self.config.servers)

	async def request(self, server = None):
		"""
		Sends a client request and returns the validated reply.
		:param server: Optional server override
		:type server: str or tuple
		:return: NTPPacket
		"""
		raddr = self.select_server(server)
		logger.debug('Querying %s:%d' % raddr)
		query = NTPPacket.construct_request(version = self.config.version)

		async with self.transport(raddr) as cli:
			await cli.send(query.to_bytes())
			reader = await cli.recv()

		packet = await NTPPacket.from_streamreader(reader)
		packet.validate_reply(
			require_server_mode = self.config.require_server_mode,
			reject_kiss_of_death = self.config.reject_kiss_of_death,
		)
		logger.debug('Reply from %s:%d stratum %d' % (raddr[0], raddr[1], packet.Stratum))
		return packet

	async def get_unix_time(self, server = None):
		"""
		:param server: Optional server override
		:type server: str or tuple
		:return: int seconds since 1970-01-01T00:00:00Z
		"""
		packet = await self.request(server)
		return timestamp_to_unix(packet.TransmitTimestamp)


async def request(server = None, config = None):
	return await NTPClient(config).request(server)

async def get_unix_ntp_time(server = None, config = None):
	"""
	Queries an NTP server and returns the current unix timestamp in whole seconds.
	Raises an NTPError subclass if the time is currently unavailable.
	"""
	return await NTPClient(config).get_unix_time(server)


if __name__ == '__main__':
	print(asyncio.run(get_unix_ntp_time()))
