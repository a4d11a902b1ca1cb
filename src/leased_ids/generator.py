import enum
import logging
import threading
from typing import Optional, Tuple

from .allocator import RangeAllocator, create_allocator
from .config import GeneratorConfig
from .counter import RemoteCounter
from .exceptions import ConfigurationError, CounterRegressed
from .id_generator import IdGenerator
from .lease_range import Cursor, LeaseRange

logger = logging.getLogger(__name__)


class GeneratorState(enum.Enum):
	UNINITIALIZED = "uninitialized"
	HAS_RANGE = "has_range"
	REFRESHING = "refreshing"
	FAILED = "failed"


class LeasedIdGenerator(IdGenerator):
	"""
	Serves IDs from a range leased out of a shared `RemoteCounter`.

	- Global uniqueness: ranges are disjoint because the counter only moves through
	  its atomic primitives.
	- `next_id()` is lock-free while the current range lasts; when it runs out, one
	  thread leases the next range while the others wait on the instance lock.
	- IDs left in a range when the process stops are never issued.
	- Thread-safe; create one instance per counter and share it.
	"""

	def __init__(
		self,
		counter: RemoteCounter,
		config: Optional[GeneratorConfig] = None,
		allocator: Optional[RangeAllocator] = None,
	):
		if counter is None:
			raise ConfigurationError("a remote counter is required")
		self._config = config if config is not None else GeneratorConfig()
		self._counter = counter
		self._allocator = allocator if allocator is not None else create_allocator(counter, self._config)

		self._lock = threading.Lock()
		# Installed as one tuple so a candidate is always checked against its own range.
		self._lease: Optional[Tuple[LeaseRange, Cursor]] = None
		self._state = GeneratorState.UNINITIALIZED
		self._leases_acquired = 0

		self._counter.initialize_if_absent(self._config.seed)

	@property
	def config(self) -> GeneratorConfig:
		return self._config

	@property
	def state(self) -> GeneratorState:
		return self._state

	@property
	def current_range(self) -> Optional[LeaseRange]:
		lease = self._lease
		return lease[0] if lease is not None else None

	@property
	def leases_acquired(self) -> int:
		return self._leases_acquired

	def next_id(self) -> int:
		while True:
			lease = self._lease
			if lease is None:
				self._refresh(None)
				continue
			id_range, cursor = lease
			candidate = cursor.next_candidate()
			if candidate in id_range:
				return candidate
			self._refresh(lease)

	def _refresh(self, exhausted: Optional[Tuple[LeaseRange, Cursor]]) -> None:
		with self._lock:
			if self._lease is not exhausted:
				# Another thread installed a new range while we waited.
				return
			previous = self._state
			self._state = GeneratorState.REFRESHING
			try:
				id_range = self._allocator.acquire()
			except Exception:
				self._state = GeneratorState.FAILED
				logger.warning("refreshing %s failed (was %s)", self._config.counter_key, previous.value)
				raise
			if exhausted is not None and id_range.lower <= exhausted[0].upper:
				self._state = GeneratorState.FAILED
				raise CounterRegressed(
					f"counter {self._config.counter_key!r} went backwards: leased {id_range} after {exhausted[0]}"
				)
			self._lease = (id_range, Cursor(id_range.lower))
			self._leases_acquired += 1
			self._state = GeneratorState.HAS_RANGE
			logger.debug("installed %s for %s", id_range, self._config.counter_key)
