from datetime import datetime, timezone
from typing import Any, Iterable, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

logger = structlog.get_logger(__name__)


def as_utc(value: datetime | None) -> datetime | None:
    # The backend sends naive timestamps for UTC; keep every datetime aware
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    """Wire models: camelCase on the wire, snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_wire(self, **kwargs) -> dict:
        return self.model_dump(by_alias=True, mode="json", **kwargs)


ModelT = TypeVar("ModelT", bound=CamelModel)


def as_list(data: Any) -> list:
    """List payloads arrive bare or wrapped in a `data` envelope."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return data["data"]
    return []


def parse_records(model: type[ModelT], items: Iterable[Any]) -> list[ModelT]:
    """Validates each payload; records the backend sends malformed are skipped and logged."""
    records = []
    for raw in items:
        try:
            records.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                "record_payload_invalid",
                model=model.__name__,
                record_id=raw.get("id") if isinstance(raw, dict) else None,
                errors=e.errors(include_url=False),
            )
    return records
