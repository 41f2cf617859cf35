"""
Constraint checks for setters, backed by pydantic.

The field annotation (including `annotated_types` / `Field` constraints kept
in its metadata) is compiled once into a `TypeAdapter`; autoprop markers are
stripped first.
"""

import logging
from typing import Annotated, Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..errors import InvalidValue
from ..runtime import AutoProp
from .properties import Marker

logger = logging.getLogger(__name__)


class ConstraintValidator:
    def __init__(self, model_cls: type[BaseModel]):
        self._model = model_cls
        self._adapters: dict[str, TypeAdapter] = {}

    def _adapter(self, name: str) -> TypeAdapter:
        adapter = self._adapters.get(name)
        if adapter is None:
            if not self._model.__pydantic_complete__:
                self._model.model_rebuild()
            field = self._model.model_fields[name]
            constraints = [m for m in field.metadata if not isinstance(m, Marker)]
            tp = Annotated[(field.annotation, *constraints)] if constraints else field.annotation
            adapter = self._adapters[name] = TypeAdapter(tp)
        return adapter

    def validate(self, name: str, value: Any) -> Any:
        """Return the validated value, or raise InvalidValue."""
        try:
            return self._adapter(name).validate_python(
                value, strict=AutoProp.settings().strict_validation
            )
        except ValidationError as exc:
            logger.debug("%s.%s rejected %r", self._model.__name__, name, value)
            raise InvalidValue(
                f"{self._model.__name__}.{name} does not accept {value!r}: "
                f"{exc.errors()[0]['msg']}"
            ) from exc

    def accepts(self, name: str, value: Any) -> bool:
        try:
            self.validate(name, value)
        except InvalidValue:
            return False
        return True
