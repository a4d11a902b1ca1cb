import itertools
from dataclasses import dataclass
from typing import Optional

# Largest value representable as a signed 64-bit integer.
MAX_ID = 2 ** 63 - 1


@dataclass(frozen=True)
class LeaseRange:
	"""
	A closed interval ``[lower, upper]`` of IDs owned exclusively by one generator.

	Ranges are never mutated; a refresh installs a new instance.
	"""

	lower: int
	upper: int

	def __post_init__(self) -> None:
		if self.lower < 1:
			raise ValueError(f"lower bound must be >= 1, got {self.lower}")
		if self.upper < self.lower:
			raise ValueError(f"empty range [{self.lower}, {self.upper}]")
		if self.upper > MAX_ID:
			raise ValueError(f"upper bound {self.upper} exceeds 64-bit id space")

	@classmethod
	def from_high_water(cls, high_water: int, size: int) -> Optional["LeaseRange"]:
		"""
		Range owned after the counter was advanced by `size` up to `high_water`.

		The counter stores the last ID leased, so the lease is
		``[high_water - size + 1, high_water]``. The lower bound is floored at 1
		so non-positive IDs are never issued; None is returned when nothing is left.
		"""
		lower = max(1, high_water - size + 1)
		if high_water < lower:
			return None
		return cls(lower, high_water)

	@property
	def size(self) -> int:
		return self.upper - self.lower + 1

	def contains(self, candidate: int) -> bool:
		return self.lower <= candidate <= self.upper

	def __contains__(self, candidate: int) -> bool:
		return self.contains(candidate)

	def __str__(self) -> str:
		return f"[{self.lower}, {self.upper}]"


class Cursor:
	"""
	Next candidate to issue from a range.

	`next_candidate()` hands out every value exactly once and keeps counting past
	the end of the range; callers check membership themselves.

	Thread safety relies on CPython with the GIL, where `itertools.count.__next__`
	cannot be interrupted. Free-threaded builds make no such promise and are not supported.
	"""

	def __init__(self, start: int):
		self._start = start
		# No lock: see the class docstring.
		self._counter = itertools.count(start)

	@property
	def start(self) -> int:
		return self._start

	def next_candidate(self) -> int:
		return next(self._counter)
