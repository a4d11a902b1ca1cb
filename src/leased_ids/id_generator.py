from abc import ABC, abstractmethod
from typing import List


class IdGenerator(ABC):
	@abstractmethod
	def next_id(self) -> int:
		"""Get the next ID number (globally unique, increasing within this instance)."""
		raise NotImplementedError

	def get_id_range(self, count: int) -> List[int]:
		"""Get `count` strictly increasing ID numbers. They are not necessarily contiguous."""
		if count <= 0:
			raise ValueError("count must be a positive integer")
		return [self.next_id() for _ in range(count)]
