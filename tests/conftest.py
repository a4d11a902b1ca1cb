import os
import sys
import threading

import pytest

# Add src to PYTHONPATH for tests run without installing the package
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
	sys.path.insert(0, SRC_DIR)

from leased_ids.counter import AdvanceResult, InMemoryCounter  # noqa: E402


class RecordingCounter(InMemoryCounter):
	"""In-memory counter that counts calls and can be told to fail the next few advances."""

	def __init__(self, key: str = "recording", value: int = 0):
		super().__init__(key=key, value=value)
		self.advance_calls = 0
		self.cas_calls = 0
		self.failures_left = 0
		self._calls_lock = threading.Lock()

	def advance_by(self, delta: int) -> AdvanceResult:
		with self._calls_lock:
			self.advance_calls += 1
			if self.failures_left > 0:
				self.failures_left -= 1
				return AdvanceResult(0, False)
		return super().advance_by(delta)

	def compare_and_set(self, expected: int, new_value: int) -> bool:
		with self._calls_lock:
			self.cas_calls += 1
			if self.failures_left > 0:
				self.failures_left -= 1
				# Simulate a competing leaser winning the race.
				super().advance_by(1)
				return False
		return super().compare_and_set(expected, new_value)


@pytest.fixture
def counter():
	return RecordingCounter()
