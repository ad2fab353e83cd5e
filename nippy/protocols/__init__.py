from abc import ABC, abstractmethod

class ProtocolBase(ABC):
	@staticmethod
	@abstractmethod
	async def from_streamreader(reader):
		"""
		awaits the reader for the full message, returns the instantiated class
		"""
		raise NotImplementedError

	@staticmethod
	@abstractmethod
	def from_bytes(bbuff):
		"""
		takes bytes, returns the instantiated class
		"""
		raise NotImplementedError

	@staticmethod
	@abstractmethod
	def from_buffer(buff):
		"""
		takes io.BytesIO, returns the instantiated class
		"""
		raise NotImplementedError

	@staticmethod
	@abstractmethod
	def construct():
		raise NotImplementedError

	@abstractmethod
	def to_bytes(self):
		"""
		serializes the class
		"""
		raise NotImplementedError
