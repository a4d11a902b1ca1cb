import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query

from .config import GeneratorConfig
from .dynamodb import DynamoDbSettings, create_dynamodb_generator
from .exceptions import IdGeneratorError
from .generator import LeasedIdGenerator

logger = logging.getLogger(__name__)


def create_app(
	generator: Optional[LeasedIdGenerator] = None,
	config: Optional[GeneratorConfig] = None,
	settings: Optional[DynamoDbSettings] = None,
):
	"""
	Build the HTTP front end for a generator.

	Without `generator`, a DynamoDB-backed one is built from `config` and
	`settings`, each falling back to the environment. Serve with
	`uvicorn leased_ids.api:create_app --factory`.
	"""
	if generator is None:
		generator = create_dynamodb_generator(
			config=config if config is not None else GeneratorConfig.from_env(),
			settings=settings if settings is not None else DynamoDbSettings.from_env(),
		)

	app = FastAPI(title="ID Generator API", version="1.0.0")

	@app.get("/next")
	def get_next() -> int:
		try:
			return generator.next_id()
		except IdGeneratorError as e:
			logger.warning("next_id failed: %s", e)
			raise HTTPException(status_code=503, detail=str(e))

	@app.get("/range")
	def get_range(count: int = Query(1, gt=0, le=100000)) -> List[int]:
		try:
			return generator.get_id_range(count)
		except ValueError as e:
			raise HTTPException(status_code=400, detail=str(e))
		except IdGeneratorError as e:
			logger.warning("get_id_range(%d) failed: %s", count, e)
			raise HTTPException(status_code=503, detail=str(e))

	@app.get("/lease")
	def get_lease() -> dict:
		current = generator.current_range
		return {
			"counter": generator.config.counter_key,
			"state": generator.state.value,
			"lower": current.lower if current is not None else None,
			"upper": current.upper if current is not None else None,
			"leases_acquired": generator.leases_acquired,
		}

	return app
