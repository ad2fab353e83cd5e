from setuptools import setup

with open('requirements.txt') as f:
	required = f.read().splitlines()

setup(
	# Application name:
	name="nippy",

	# Version number (initial):
	version="0.1.0",

	# Packages
	packages=["nippy", "nippy.core", "nippy.clients", "nippy.protocols"],

	zip_safe = True,
	description="Asynchronous NTP client returning the current unix time",

	#Dependent packages (distributions)
	install_requires=required,

	extras_require={
		'test': ['pytest', 'pytest-asyncio'],
	},

	entry_points={
		'console_scripts': [
			'nippy = nippy.__main__:main',
		],
	},

	python_requires='>=3.7',
)
