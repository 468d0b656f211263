# utils/sentinels.py
from typing import Any, ClassVar, Optional, Self

from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema


class Missing:
	"""Marker for "field not provided" in partial-update DTOs (``None`` means NULL)."""

	_instance: ClassVar[Optional["Missing"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __repr__(self) -> str:
		return "MISSING"

	def __bool__(self) -> bool:
		return False

	@classmethod
	def __get_pydantic_core_schema__(cls, _source, _handler) -> core_schema.CoreSchema:
		def validate(v):
			if v is cls._instance:
				return v
			raise ValueError("value is not the Missing sentinel")
		return core_schema.no_info_plain_validator_function(
			validate,
			serialization=core_schema.plain_serializer_function_ser_schema(lambda _: "MISSING"),
		)

	@classmethod
	def __get_pydantic_json_schema__(cls, _core_schema: core_schema.CoreSchema, _handler) -> JsonSchemaValue:
		# never sent by clients
		return {
			"title": "Missing sentinel (internal)",
			"type": "string",
			"const": "MISSING",
			"readOnly": True,
			"writeOnly": True,
			"x-internal": True,
		}


MISSING = Missing()


def provided(value: Any) -> bool:
	return value is not MISSING
