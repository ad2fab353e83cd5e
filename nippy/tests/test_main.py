import json
import socket
import datetime
import threading
import ipaddress

import pytest

from nippy.__main__ import get_argparser, config_from_args, main
from nippy.core.config import NTPClientConfig
from nippy.protocols.NTP import NTPPacket


@pytest.fixture
def one_shot_server():
	sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
	sock.bind(('127.0.0.1', 0))
	sock.settimeout(5)

	def serve():
		try:
			data, addr = sock.recvfrom(1024)
		except OSError:
			return
		query = NTPPacket.from_bytes(data)
		reply = NTPPacket.construct_reply(query.TransmitTimestamp, datetime.datetime(2024, 1, 1), ipaddress.IPv4Address('127.0.0.1'))
		sock.sendto(reply.to_bytes(), addr)

	thread = threading.Thread(target = serve, daemon = True)
	thread.start()
	yield sock.getsockname()[1]
	thread.join(timeout = 5)
	sock.close()


def test_prints_unix_time(one_shot_server, capsys):
	assert main(['-s', '127.0.0.1:%d' % one_shot_server, '-t', '5']) == 0
	assert capsys.readouterr().out.strip() == '1704067200'


def test_default_config_when_no_source():
	args = get_argparser().parse_args([])
	assert config_from_args(args) == NTPClientConfig.default()


def test_json_config(tmp_path):
	path = tmp_path / 'nippy.json'
	path.write_text(json.dumps({'servers': ['127.0.0.1:5123'], 'version': 4}))
	args = get_argparser().parse_args(['-c', str(path)])
	config = config_from_args(args)
	assert config.servers == (('127.0.0.1', 5123),)
	assert config.version == 4


def test_invalid_server_fails(capsys):
	assert main(['-s', 'host:notaport']) == 1
	assert 'Time currently unavailable' in capsys.readouterr().err


def test_missing_config_file_exits(tmp_path):
	with pytest.raises(SystemExit):
		main(['-c', str(tmp_path / 'missing.json')])


def test_json_config_not_an_object_exits(tmp_path):
	path = tmp_path / 'nippy.json'
	path.write_text('["0.pool.ntp.org"]')
	with pytest.raises(SystemExit) as exc:
		main(['-c', str(path)])
	assert exc.value.code == 2


def test_bad_logsettings_exits(tmp_path):
	path = tmp_path / 'nippy.json'
	path.write_text(json.dumps({'logsettings': {'version': 99}}))
	with pytest.raises(SystemExit) as exc:
		main(['-c', str(path)])
	assert exc.value.code == 2


def test_empty_ipv6_host_reports_unavailable(capsys):
	assert main(['-s', '[]:123']) == 1
	assert 'Time currently unavailable' in capsys.readouterr().err
