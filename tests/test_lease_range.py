import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from leased_ids.lease_range import MAX_ID, Cursor, LeaseRange


def test_closed_range_membership():
	lease = LeaseRange(101, 102)
	assert 100 not in lease
	assert 101 in lease
	assert 102 in lease
	assert not lease.contains(103)
	assert lease.size == 2


def test_from_high_water_takes_the_block_ending_at_the_counter():
	assert LeaseRange.from_high_water(102, 2) == LeaseRange(101, 102)


def test_from_high_water_floors_lower_bound_at_one():
	lease = LeaseRange.from_high_water(5, 10)
	assert lease == LeaseRange(1, 5)
	assert LeaseRange.from_high_water(0, 10) is None


@pytest.mark.parametrize("lower,upper", [(0, 5), (5, 4), (1, MAX_ID + 1)])
def test_invalid_ranges_rejected(lower, upper):
	with pytest.raises(ValueError):
		LeaseRange(lower, upper)


def test_ranges_are_immutable():
	lease = LeaseRange(1, 10)
	with pytest.raises(AttributeError):
		lease.lower = 2  # type: ignore[misc]


def test_cursor_counts_past_the_range_without_checking():
	cursor = Cursor(9)
	assert [cursor.next_candidate() for _ in range(3)] == [9, 10, 11]
	assert cursor.start == 9


def test_cursor_hands_out_each_value_once_under_threads():
	cursor = Cursor(1)
	results = []
	lock = threading.Lock()

	def work():
		val = cursor.next_candidate()
		with lock:
			results.append(val)

	with ThreadPoolExecutor(max_workers=32) as ex:
		for _ in range(2000):
			ex.submit(work)

	assert sorted(results) == list(range(1, 2001))
