import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigurationError

ATOMIC_ADD = "atomic_add"
COMPARE_AND_SET = "compare_and_set"
STRATEGIES = (ATOMIC_ADD, COMPARE_AND_SET)


@dataclass(frozen=True)
class GeneratorConfig:
	"""
	Settings captured when a generator is constructed.

	- `namespace` and `name` identify the shared counter; one generator per name.
	- `ids_per_lease` is how many IDs are cached locally per remote call. Unused
	  IDs of a lease are lost when the process exits, so do not fetch too aggressively.
	- `max_acquire_attempts` bounds the remote calls made for a single lease.
	- `seed` is only applied when the remote counter has no value yet.
	"""

	namespace: str = "/monotone/id_gen"
	name: str = "default"
	ids_per_lease: int = 1000
	max_acquire_attempts: int = 5
	seed: int = 0
	strategy: str = ATOMIC_ADD

	def __post_init__(self) -> None:
		if not self.namespace:
			raise ConfigurationError("namespace must not be empty")
		if not self.name:
			raise ConfigurationError("name must not be empty")
		_require_int("ids_per_lease", self.ids_per_lease, minimum=1)
		_require_int("max_acquire_attempts", self.max_acquire_attempts, minimum=1)
		_require_int("seed", self.seed, minimum=0)
		if self.strategy not in STRATEGIES:
			raise ConfigurationError(f"strategy must be one of {STRATEGIES}, got {self.strategy!r}")

	@property
	def counter_key(self) -> str:
		return f"{self.namespace.rstrip('/')}/{self.name}"

	@classmethod
	def from_env(cls, environ: Optional[Mapping[str, str]] = None, prefix: str = "ID_GEN_") -> "GeneratorConfig":
		env = os.environ if environ is None else environ
		kwargs = {}
		for field_name, var in (
			("namespace", "NAMESPACE"),
			("name", "COUNTER_NAME"),
			("strategy", "STRATEGY"),
		):
			if prefix + var in env:
				kwargs[field_name] = env[prefix + var]
		for field_name, var in (
			("ids_per_lease", "IDS_PER_LEASE"),
			("max_acquire_attempts", "MAX_ACQUIRE_ATTEMPTS"),
			("seed", "SEED"),
		):
			if prefix + var in env:
				kwargs[field_name] = _parse_int(prefix + var, env[prefix + var])
		return cls(**kwargs)


def _require_int(field_name: str, value: int, minimum: int) -> None:
	if isinstance(value, bool) or not isinstance(value, int):
		raise ConfigurationError(f"{field_name} must be an integer, got {value!r}")
	if value < minimum:
		raise ConfigurationError(f"{field_name} needs to be >= {minimum}, got {value}")


def _parse_int(var: str, raw: str) -> int:
	try:
		return int(raw)
	except ValueError as e:
		raise ConfigurationError(f"{var} must be an integer, got {raw!r}") from e
