import logging
import threading
from abc import ABC, abstractmethod
from typing import NamedTuple

logger = logging.getLogger(__name__)


class AdvanceResult(NamedTuple):
	value: int
	succeeded: bool


class RemoteCounter(ABC):
	"""
	A durable integer shared by every generator using the same counter key.

	The stored value is the last ID leased to any generator. Advancing the
	counter from ``c`` to ``c + n`` grants the caller ``[c + 1, c + n]``.

	Implementations provide `read`, `initialize_if_absent`, and at least one of
	`advance_by` / `compare_and_set`. Both primitives must be atomic on the
	backend; they are the only ways the value may change. Implementations are
	also responsible for bounding the latency of each call.
	"""

	key: str = "counter"

	@abstractmethod
	def initialize_if_absent(self, seed: int) -> None:
		"""Set the value to `seed` if it is absent or zero; never overwrite a nonzero value."""
		raise NotImplementedError

	@abstractmethod
	def read(self) -> int:
		"""Current value, 0 when the counter does not exist yet. Raises `CounterBusy` for a retryable failure."""
		raise NotImplementedError

	def advance_by(self, delta: int) -> AdvanceResult:
		"""Atomically add `delta` and return the new value."""
		raise NotImplementedError(f"{type(self).__name__} does not support atomic add")

	def compare_and_set(self, expected: int, new_value: int) -> bool:
		"""Store `new_value` only if the current value equals `expected`."""
		raise NotImplementedError(f"{type(self).__name__} does not support compare-and-set")


class InMemoryCounter(RemoteCounter):
	"""Process-local counter; shared between generators in the same process."""

	def __init__(self, key: str = "memory", value: int = 0):
		self.key = key
		self._value = value
		self._lock = threading.Lock()

	def initialize_if_absent(self, seed: int) -> None:
		with self._lock:
			if self._value == 0:
				self._value = seed
				logger.debug("initialized %s to %d", self.key, seed)

	def read(self) -> int:
		with self._lock:
			return self._value

	def advance_by(self, delta: int) -> AdvanceResult:
		with self._lock:
			self._value += delta
			return AdvanceResult(self._value, True)

	def compare_and_set(self, expected: int, new_value: int) -> bool:
		with self._lock:
			if self._value != expected:
				return False
			self._value = new_value
			return True
