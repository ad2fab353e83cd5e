import io
import socket
import asyncio
import logging

from nippy.core.exceptions import ResolutionError, SendError, ReceiveError

logger = logging.getLogger('nippy')


def recvfrom(loop, sock, n_bytes, fut=None, registered=False):
	fd = sock.fileno()
	if fut is None:
		fut = loop.create_future()
	if registered:
		loop.remove_reader(fd)
	if fut.done():
		return fut

	try:
		data, addr = sock.recvfrom(n_bytes)
	except (BlockingIOError, InterruptedError):
		loop.add_reader(fd, recvfrom, loop, sock, n_bytes, fut, True)
	except OSError as e:
		fut.set_exception(e)
	else:
		fut.set_result((data, addr))
	return fut

def sendto(loop, sock, data, addr, fut=None, registered=False):
	fd = sock.fileno()
	if fut is None:
		fut = loop.create_future()
	if registered:
		loop.remove_writer(fd)
	if fut.done():
		return fut

	try:
		if addr is None:
			n = sock.send(data)
		else:
			n = sock.sendto(data, addr)
	except (BlockingIOError, InterruptedError):
		loop.add_writer(fd, sendto, loop, sock, data, addr, fut, True)
	except OSError as e:
		fut.set_exception(e)
	else:
		fut.set_result(n)
	return fut


class UDPReader():
	def __init__(self, data, addr):
		self._ldata = len(data)
		self._remaining = len(data)
		self._addr = addr
		self.buff = io.BytesIO(data)

	async def read(self, n = -1):
		if n == -1:
			self._remaining = 0
		else:
			self._remaining = max(self._remaining - n, 0)
		return self.buff.read(n)

	async def readexactly(self, n):
		if n > self._remaining:
			raise asyncio.IncompleteReadError(self.buff.read(), n)
		self._remaining -= n
		return self.buff.read(n)

	def at_eof(self):
		return self._remaining == 0

	def get_peer_address(self):
		return self._addr


class UDPClient():
	"""
	One-shot datagram exchange with a single remote peer.
	The socket lives only inside the async with block and is closed on every exit path,
	cancellation included.
	"""
	def __init__(self, raddr, loop = None):
		self._raddr  = raddr
		self._loop   = loop
		self._socket = None
		self._laddr  = None
		self._resolved = None

	async def resolve(self):
		"""
		Resolves the remote (host, port) pair to a socket address
		:return: tuple of (family, sockaddr)
		"""
		host, port = self._raddr
		try:
			infos = await self._loop.getaddrinfo(host, port, type = socket.SOCK_DGRAM)
		except (OSError, UnicodeError, TypeError) as e:
			raise ResolutionError('Could not resolve %s: %s' % (host, e)) from e
		if not infos:
			raise ResolutionError('Could not resolve %s: no addresses returned' % host)
		family, _, _, _, sockaddr = infos[0]
		logger.debug('Resolved %s:%d to %s' % (host, port, sockaddr[0]))
		return family, sockaddr

	def start_socket(self, family):
		self._socket = socket.socket(family, socket.SOCK_DGRAM, 0)
		try:
			self._socket.setblocking(False)
			self._socket.bind(('', 0))
			#the kernel drops datagrams that do not come from the server
			self._socket.connect(self._resolved)
		except OSError:
			self.close()
			raise
		self._laddr  = self._socket.getsockname()
		logger.debug('Local address: %s' % repr(self._laddr))

	async def __aenter__(self):
		if self._loop is None:
			self._loop = asyncio.get_running_loop()
		family, self._resolved = await self.resolve()
		try:
			self.start_socket(family)
		except OSError as e:
			raise SendError('Could not open datagram socket: %s' % e) from e
		return self

	async def __aexit__(self, exc_type, exc, tb):
		self.close()
		return False

	def close(self):
		if self._socket is None:
			return
		fd = self._socket.fileno()
		if fd != -1:
			self._loop.remove_reader(fd)
			self._loop.remove_writer(fd)
		self._socket.close()
		self._socket = None

	def is_closed(self):
		return self._socket is None

	def get_local_address(self):
		return self._laddr

	async def send(self, data):
		try:
			n = await sendto(self._loop, self._socket, data, None)
		except OSError as e:
			raise SendError('Sending to %s failed: %s' % (self._resolved[0], e)) from e
		if n != len(data):
			raise SendError('Short write to %s: %d of %d bytes' % (self._resolved[0], n, len(data)))
		logger.debug('sent: %d' % n)
		return n

	async def recv(self, n_bytes = 65536):
		try:
			data, addr = await recvfrom(self._loop, self._socket, n_bytes)
		except OSError as e:
			raise ReceiveError('Receiving from %s failed: %s' % (self._resolved[0], e)) from e
		logger.debug('recv: %d bytes from %s' % (len(data), repr(addr)))
		return UDPReader(data, addr)
