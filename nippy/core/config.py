import os
import json
import collections
import importlib.machinery
import importlib.util

from nippy.core.exceptions import ConfigurationError
from nippy.protocols.NTP import NTP_PORT

DEFAULT_SERVERS = (
	'0.pool.ntp.org',
	'1.pool.ntp.org',
	'2.pool.ntp.org',
	'3.pool.ntp.org',
)

DEFAULT_VALIDATION = {
	'require_server_mode' : True,
	'reject_kiss_of_death': True,
}


def parse_server_address(server, default_port = NTP_PORT):
	"""
	Turns a server description into a (host, port) tuple.
	Accepted forms: 'host', 'host:port', '[ipv6]', '[ipv6]:port', bare IPv6 address, (host, port)
	:param server: server description
	:type server: str or tuple
	:param default_port: port used when the description has none
	:type default_port: int
	:return: tuple
	"""
	if isinstance(server, (tuple, list)):
		if len(server) != 2:
			raise ConfigurationError('Server tuple must be (host, port), got %s' % repr(server))
		host, port = server
		if not isinstance(host, str):
			raise ConfigurationError('Server host must be a string, got %s' % type(host).__name__)
	elif isinstance(server, str):
		server = server.strip()
		if server.startswith('['):
			end = server.find(']')
			if end == -1:
				raise ConfigurationError('Unterminated IPv6 address: %s' % server)
			host = server[1:end]
			rest = server[end+1:]
			if rest == '':
				port = default_port
			elif rest.startswith(':'):
				port = rest[1:]
			else:
				raise ConfigurationError('Unexpected characters after IPv6 address: %s' % server)
		elif server.count(':') == 1:
			host, port = server.split(':')
		else:
			#hostname, IPv4 address or bare IPv6 address
			host, port = server, default_port
	else:
		raise ConfigurationError('Server must be a string or a (host, port) tuple, got %s' % type(server).__name__)

	if not host:
		raise ConfigurationError('Empty host in server description: %s' % repr(server))
	try:
		port = int(port)
	except (TypeError, ValueError):
		raise ConfigurationError('Invalid port in server description: %s' % repr(server)) from None
	if not 0 < port < 65536:
		raise ConfigurationError('Port out of range in server description: %s' % repr(server))
	return (host, port)


class NTPClientConfig(collections.namedtuple('NTPClientConfig', ['servers', 'version', 'require_server_mode', 'reject_kiss_of_death', 'log_settings'])):
	"""
	Immutable client settings, handed to the client at call time.
	servers is a tuple of (host, port) pairs the client picks from for each query.
	"""
	CONFIG_OS_KEY = 'NIPPY_CONFIG'
	__slots__ = ()

	@staticmethod
	def create(servers = DEFAULT_SERVERS, port = NTP_PORT, version = 3, validation = None, log_settings = None):
		if isinstance(servers, (str, bytes)):
			servers = [servers]
		servers = tuple(parse_server_address(server, port) for server in servers)
		if len(servers) == 0:
			raise ConfigurationError('At least one NTP server must be configured!')
		if version not in range(1, 5):
			raise ConfigurationError('Unsupported NTP version %s' % repr(version))

		policy = dict(DEFAULT_VALIDATION)
		if validation is not None:
			if not isinstance(validation, dict):
				raise ConfigurationError('validation must be a mapping, got %s' % type(validation).__name__)
			unknown = set(validation) - set(DEFAULT_VALIDATION)
			if unknown:
				raise ConfigurationError('Unknown validation settings: %s' % ', '.join(sorted(unknown)))
			policy.update(validation)

		return NTPClientConfig(
			servers = servers,
			version = version,
			require_server_mode = bool(policy['require_server_mode']),
			reject_kiss_of_death = bool(policy['reject_kiss_of_death']),
			log_settings = log_settings,
		)

	@staticmethod
	def default():
		return NTPClientConfig.create()

	@staticmethod
	def from_dict(config):
		if not isinstance(config, dict):
			raise ConfigurationError('Configuration must be a mapping, got %s' % type(config).__name__)
		return NTPClientConfig.create(
			servers = config.get('servers', DEFAULT_SERVERS),
			port = config.get('port', NTP_PORT),
			version = config.get('version', 3),
			validation = config.get('validation'),
			log_settings = config.get('logsettings'),
		)

	@staticmethod
	def from_json(config_data):
		try:
			config = json.loads(config_data)
		except ValueError as e:
			raise ConfigurationError('Invalid JSON configuration: %s' % e) from e
		return NTPClientConfig.from_dict(config)

	@staticmethod
	def from_file(file_path):
		try:
			with open(file_path, 'r', encoding = 'utf-8') as f:
				config_data = f.read()
		except UnicodeDecodeError as e:
			raise ConfigurationError('Configuration file %s is not valid UTF-8: %s' % (file_path, e)) from e
		return NTPClientConfig.from_json(config_data)

	@staticmethod
	def from_python_script(file_path):
		loader = importlib.machinery.SourceFileLoader('nippyconfig', file_path)
		spec = importlib.util.spec_from_loader(loader.name, loader)
		nippyconfig = importlib.util.module_from_spec(spec)
		loader.exec_module(nippyconfig)
		config = {}
		for key in ['servers', 'port', 'version', 'validation', 'logsettings']:
			if hasattr(nippyconfig, key):
				config[key] = getattr(nippyconfig, key)
		return NTPClientConfig.from_dict(config)

	@staticmethod
	def from_os_env():
		config_file = os.environ.get(NTPClientConfig.CONFIG_OS_KEY)
		if config_file is None:
			raise ConfigurationError(
				'Could not find configuration file path in os environment variables! '
				'Name to be set: %s' % NTPClientConfig.CONFIG_OS_KEY
			)
		return NTPClientConfig.from_python_script(config_file)
