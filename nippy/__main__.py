#!/usr/bin/python3
import sys
import asyncio
import logging
import logging.config
import argparse

from nippy.core.config import NTPClientConfig
from nippy.core.exceptions import NTPError, ConfigurationError
from nippy.clients.ntp import NTPClient


def get_argparser():
	parser = argparse.ArgumentParser(
		prog='nippy',
		description='Prints the current unix timestamp as reported by an NTP server',
	)
	parser.add_argument(
		"-s",
		"--server",
		help="NTP server to query (host, host:port or [ipv6]:port). Overrides the configured pool"
	)
	parser.add_argument(
		"-c",
		"--config",
		help="Configuration file (JSON). Full path please"
	)
	parser.add_argument(
		"-p",
		"--python-config",
		help="Configuration file (Python). Full path please"
	)
	parser.add_argument(
		"-e",
		"--environ-config",
		action='store_true',
		help="Configuration file is set via OS environment variable (Python script)"
	)
	parser.add_argument(
		"-t",
		"--timeout",
		type=float,
		help="Give up after this many seconds. Waits forever if not set"
	)
	parser.add_argument(
		'-v',
		'--verbose',
		action='count',
		default=0
	)
	return parser

def config_from_args(args):
	if args.config is not None:
		return NTPClientConfig.from_file(args.config)
	elif args.python_config is not None:
		return NTPClientConfig.from_python_script(args.python_config)
	elif args.environ_config:
		return NTPClientConfig.from_os_env()
	return NTPClientConfig.default()

def setup_logging(config, verbosity):
	if config.log_settings is not None:
		try:
			logging.config.dictConfig(config.log_settings)
		except (ValueError, TypeError, AttributeError, ImportError) as e:
			raise ConfigurationError('Invalid logsettings: %s' % e) from e
		return
	level = logging.WARNING
	if verbosity == 1:
		level = logging.INFO
	elif verbosity > 1:
		level = logging.DEBUG
	logging.basicConfig(level=level, format='%(asctime)s %(name)-15s %(levelname)-8s %(message)s')

async def query(config, server, timeout):
	client = NTPClient(config)
	return await asyncio.wait_for(client.get_unix_time(server), timeout=timeout)

def main(argv = None):
	parser = get_argparser()
	args = parser.parse_args(argv)
	try:
		config = config_from_args(args)
		setup_logging(config, args.verbose)
	except (ConfigurationError, OSError) as e:
		parser.error(str(e))

	try:
		timestamp = asyncio.run(query(config, args.server, args.timeout))
	except asyncio.TimeoutError:
		print('Time currently unavailable: no reply within %s seconds' % args.timeout, file=sys.stderr)
		return 1
	except NTPError as e:
		print('Time currently unavailable: %s' % e, file=sys.stderr)
		return 1

	print(timestamp)
	return 0

if __name__ == '__main__':
	sys.exit(main())
