class IdGeneratorError(Exception):
	"""Base class for errors raised by this package."""


class ConfigurationError(IdGeneratorError, ValueError):
	"""Invalid generator parameters, detected at construction time."""


class AllocationExhausted(IdGeneratorError):
	"""No range could be leased within the configured attempt budget."""

	def __init__(self, counter_key: str, attempts: int, reason: str = "attempt budget exhausted"):
		self.counter_key = counter_key
		self.attempts = attempts
		super().__init__(
			f"could not lease a range from counter {counter_key!r} after {attempts} attempt(s): {reason}"
		)


class BackendUnavailable(IdGeneratorError):
	"""The remote counter backend failed in a way that is not worth retrying."""


class CounterRegressed(IdGeneratorError):
	"""A new lease did not start above the previous one; the shared counter was reset."""


class CounterBusy(IdGeneratorError):
	"""A counter call failed transiently (e.g. throttling); the allocator may retry."""
