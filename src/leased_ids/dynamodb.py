import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import GeneratorConfig
from .counter import AdvanceResult, RemoteCounter
from .exceptions import BackendUnavailable, CounterBusy
from .generator import LeasedIdGenerator

logger = logging.getLogger(__name__)

# Error codes worth another attempt; anything else is reported as BackendUnavailable.
TRANSIENT_ERROR_CODES = frozenset({
	"ProvisionedThroughputExceededException",
	"ThrottlingException",
	"RequestLimitExceeded",
	"TransactionConflictException",
})


@dataclass(frozen=True)
class DynamoDbSettings:
	table_name: str = "id_counters"
	region_name: str = "ap-south-1"
	endpoint_url: Optional[str] = None
	create_table_if_not_exists: bool = False

	@classmethod
	def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DynamoDbSettings":
		env = os.environ if environ is None else environ
		return cls(
			table_name=env.get("TABLE_NAME", cls.table_name),
			region_name=env.get("AWS_REGION", cls.region_name),
			endpoint_url=env.get("DYNAMODB_ENDPOINT_URL") or None,
			create_table_if_not_exists=env.get("CREATE_TABLE", "").lower() in ("1", "true", "yes"),
		)


class DynamoDbCounter(RemoteCounter):
	"""
	Counter stored as the `value` attribute of one DynamoDB item.

	- `advance_by` uses UpdateItem with ADD, which is atomic on the server.
	- `compare_and_set` uses a conditional SET; a missing attribute counts as 0.
	- Per-call retries and timeouts come from the botocore client config.
	"""

	def __init__(
		self,
		table_name: str,
		counter_id: str = "global",
		region_name: str = "ap-south-1",
		endpoint_url: Optional[str] = None,
		boto3_resource: Optional[object] = None,
		create_table_if_not_exists: bool = False,
	):
		self._table_name = table_name
		self.key = counter_id
		if boto3_resource is not None:
			self._dynamodb = boto3_resource
		else:
			self._dynamodb = boto3.resource(
				"dynamodb",
				region_name=region_name,
				endpoint_url=endpoint_url,
				config=Config(retries={"max_attempts": 10, "mode": "standard"}),
			)

		if create_table_if_not_exists:
			try:
				self._ensure_table()
			except (ClientError, BotoCoreError) as e:
				raise self._unavailable("create table", e) from e

		self._table = self._dynamodb.Table(self._table_name)

	def _ensure_table(self) -> None:
		existing_tables = [t.name for t in self._dynamodb.tables.all()]
		if self._table_name in existing_tables:
			return
		logger.info("creating table %s", self._table_name)
		self._dynamodb.create_table(
			TableName=self._table_name,
			AttributeDefinitions=[{"AttributeName": "counter_id", "AttributeType": "S"}],
			KeySchema=[{"AttributeName": "counter_id", "KeyType": "HASH"}],
			BillingMode="PAY_PER_REQUEST",
		)
		self._dynamodb.Table(self._table_name).wait_until_exists()

	def _unavailable(self, action: str, error: Exception) -> BackendUnavailable:
		logger.warning("%s on %s failed: %s", action, self.key, error)
		return BackendUnavailable(f"{action} on counter {self.key!r} failed: {error}")

	def initialize_if_absent(self, seed: int) -> None:
		try:
			self._table.update_item(
				Key={"counter_id": self.key},
				UpdateExpression="SET #v = :seed",
				ConditionExpression="attribute_not_exists(#v) OR #v = :zero",
				ExpressionAttributeNames={"#v": "value"},
				ExpressionAttributeValues={":seed": Decimal(seed), ":zero": Decimal(0)},
			)
		except ClientError as e:
			if _error_code(e) != "ConditionalCheckFailedException":
				raise self._unavailable("initialize", e) from e
			logger.debug("%s already holds a value, seed %d ignored", self.key, seed)
			return
		except BotoCoreError as e:
			raise self._unavailable("initialize", e) from e
		logger.debug("initialized %s to %d", self.key, seed)

	def read(self) -> int:
		try:
			response = self._table.get_item(Key={"counter_id": self.key}, ConsistentRead=True)
		except ClientError as e:
			if _error_code(e) not in TRANSIENT_ERROR_CODES:
				raise self._unavailable("read", e) from e
			logger.info("read on %s throttled: %s", self.key, _error_code(e))
			raise CounterBusy(f"read on counter {self.key!r} throttled: {_error_code(e)}") from e
		except BotoCoreError as e:
			raise self._unavailable("read", e) from e
		item = response.get("Item")
		# DynamoDB returns Decimal; convert to int
		return int(item["value"]) if item and "value" in item else 0

	def advance_by(self, delta: int) -> AdvanceResult:
		try:
			response = self._table.update_item(
				Key={"counter_id": self.key},
				UpdateExpression="ADD #v :inc",
				ExpressionAttributeNames={"#v": "value"},
				ExpressionAttributeValues={":inc": Decimal(delta)},
				ReturnValues="UPDATED_NEW",
			)
		except ClientError as e:
			if _error_code(e) not in TRANSIENT_ERROR_CODES:
				raise self._unavailable("advance", e) from e
			logger.info("advance on %s throttled: %s", self.key, _error_code(e))
			return AdvanceResult(0, False)
		except BotoCoreError as e:
			raise self._unavailable("advance", e) from e
		return AdvanceResult(int(response["Attributes"]["value"]), True)

	def compare_and_set(self, expected: int, new_value: int) -> bool:
		condition = "#v = :expected"
		if expected == 0:
			condition = "attribute_not_exists(#v) OR #v = :expected"
		try:
			self._table.update_item(
				Key={"counter_id": self.key},
				UpdateExpression="SET #v = :new",
				ConditionExpression=condition,
				ExpressionAttributeNames={"#v": "value"},
				ExpressionAttributeValues={":new": Decimal(new_value), ":expected": Decimal(expected)},
			)
		except ClientError as e:
			code = _error_code(e)
			if code != "ConditionalCheckFailedException" and code not in TRANSIENT_ERROR_CODES:
				raise self._unavailable("compare-and-set", e) from e
			return False
		except BotoCoreError as e:
			raise self._unavailable("compare-and-set", e) from e
		return True


def _error_code(error: ClientError) -> str:
	return error.response.get("Error", {}).get("Code", "")


def create_dynamodb_generator(
	config: Optional[GeneratorConfig] = None,
	settings: Optional[DynamoDbSettings] = None,
	boto3_resource: Optional[object] = None,
) -> LeasedIdGenerator:
	config = config if config is not None else GeneratorConfig()
	settings = settings if settings is not None else DynamoDbSettings()
	counter = DynamoDbCounter(
		table_name=settings.table_name,
		counter_id=config.counter_key,
		region_name=settings.region_name,
		endpoint_url=settings.endpoint_url,
		boto3_resource=boto3_resource,
		create_table_if_not_exists=settings.create_table_if_not_exists,
	)
	return LeasedIdGenerator(counter, config)
