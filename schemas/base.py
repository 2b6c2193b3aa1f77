# schemas/base.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
     """
     Base for API payloads: snake_case in Python, camelCase on the wire.

     Either spelling is accepted on input; FastAPI serializes responses by alias.
     """

     model_config = ConfigDict(
          alias_generator=to_camel,
          populate_by_name=True,
          from_attributes=True,
     )

     def to_payload(self) -> dict:
          """JSON-ready camelCase dict with unset optional fields omitted."""
          return self.model_dump(by_alias=True, exclude_none=True, mode="json")
