"""Range-leasing ID generation backed by a shared remote counter."""

from .config import GeneratorConfig
from .counter import AdvanceResult, InMemoryCounter, RemoteCounter
from .exceptions import (
	AllocationExhausted,
	BackendUnavailable,
	ConfigurationError,
	CounterBusy,
	CounterRegressed,
	IdGeneratorError,
)
from .generator import GeneratorState, LeasedIdGenerator
from .id_generator import IdGenerator
from .lease_range import MAX_ID, LeaseRange

__all__ = [
	"AdvanceResult",
	"AllocationExhausted",
	"BackendUnavailable",
	"ConfigurationError",
	"CounterBusy",
	"CounterRegressed",
	"GeneratorConfig",
	"GeneratorState",
	"IdGenerator",
	"IdGeneratorError",
	"InMemoryCounter",
	"LeaseRange",
	"LeasedIdGenerator",
	"MAX_ID",
	"RemoteCounter",
]
