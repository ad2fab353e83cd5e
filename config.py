#sample configuration, load it with `python -m nippy -p config.py`
#or point the NIPPY_CONFIG environment variable at it and use `-e`

logsettings = {
	'version'   : 1,
	'formatters': {
		'detailed': {
			'class' : 'logging.Formatter',
			'format': '%(asctime)s %(name)-15s %(levelname)-8s %(message)s'
		}
	},
	'handlers'  : {
		'console': {
			'class'    : 'logging.StreamHandler',
			'level'    : 'DEBUG',
			'formatter': 'detailed',
		}
	},
	'loggers'   : {
		'nippy': {
			'level'   : 'DEBUG',
			'handlers': ['console'],
		}
	},
}

servers = [
	'0.pool.ntp.org',
	'1.pool.ntp.org',
	'time.cloudflare.com',
	'time.google.com:123',
]

validation = {
	'require_server_mode' : True,
	'reject_kiss_of_death': True,
}
