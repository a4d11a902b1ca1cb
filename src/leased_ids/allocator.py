import logging
from abc import ABC, abstractmethod
from typing import Optional

from .config import ATOMIC_ADD, COMPARE_AND_SET, GeneratorConfig
from .counter import RemoteCounter
from .exceptions import AllocationExhausted, ConfigurationError, CounterBusy
from .lease_range import MAX_ID, LeaseRange

logger = logging.getLogger(__name__)


class RangeAllocator(ABC):
	"""
	Leases new ranges from a `RemoteCounter`.

	Each call to `acquire()` makes at most `max_attempts` attempts. Failed
	attempts (lost races, transient backend failures) are retried; once the
	budget is spent `AllocationExhausted` is raised. Exceptions raised by the
	counter itself, such as `BackendUnavailable`, propagate immediately.
	"""

	def __init__(self, counter: RemoteCounter, ids_per_lease: int, max_attempts: int):
		self._counter = counter
		self._ids_per_lease = ids_per_lease
		self._max_attempts = max_attempts

	@property
	def ids_per_lease(self) -> int:
		return self._ids_per_lease

	@property
	def max_attempts(self) -> int:
		return self._max_attempts

	def acquire(self) -> LeaseRange:
		for attempt in range(1, self._max_attempts + 1):
			lease = self._try_acquire()
			if lease is not None:
				logger.debug("leased %s from %s on attempt %d", lease, self._counter.key, attempt)
				return lease
			logger.info("lease attempt %d/%d on %s failed", attempt, self._max_attempts, self._counter.key)

		logger.warning("giving up on %s after %d attempts", self._counter.key, self._max_attempts)
		raise AllocationExhausted(self._counter.key, self._max_attempts)

	@abstractmethod
	def _try_acquire(self) -> Optional[LeaseRange]:
		"""Make one attempt; None means the attempt failed and may be retried."""
		raise NotImplementedError

	def _lease_up_to(self, high_water: int) -> Optional[LeaseRange]:
		if high_water > MAX_ID:
			raise AllocationExhausted(self._counter.key, self._max_attempts, reason="64-bit id space exhausted")
		return LeaseRange.from_high_water(high_water, self._ids_per_lease)


class AtomicAddAllocator(RangeAllocator):
	"""Advances the counter with a single atomic add per attempt."""

	def _try_acquire(self) -> Optional[LeaseRange]:
		result = self._counter.advance_by(self._ids_per_lease)
		if not result.succeeded:
			return None
		return self._lease_up_to(result.value)


class CompareAndSetAllocator(RangeAllocator):
	"""Reads the counter then advances it with compare-and-set; a lost race costs one attempt."""

	def _try_acquire(self) -> Optional[LeaseRange]:
		try:
			current = self._counter.read()
		except CounterBusy as e:
			logger.debug("read of %s failed transiently: %s", self._counter.key, e)
			return None
		new_value = current + self._ids_per_lease
		if new_value > MAX_ID:
			# Checked before the write so the shared counter never leaves the 64-bit range.
			raise AllocationExhausted(self._counter.key, self._max_attempts, reason="64-bit id space exhausted")
		if not self._counter.compare_and_set(current, new_value):
			logger.debug("compare-and-set %d -> %d on %s lost a race", current, new_value, self._counter.key)
			return None
		return self._lease_up_to(new_value)


def create_allocator(counter: RemoteCounter, config: GeneratorConfig) -> RangeAllocator:
	if config.strategy == ATOMIC_ADD:
		allocator_cls = AtomicAddAllocator
	elif config.strategy == COMPARE_AND_SET:
		allocator_cls = CompareAndSetAllocator
	else:
		raise ConfigurationError(f"unknown strategy {config.strategy!r}")
	return allocator_cls(counter, config.ids_per_lease, config.max_acquire_attempts)
