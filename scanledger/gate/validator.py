"""
コマンド入力の宣言的バリデータ。
スキーマに載っているフィールドだけを検証して返す（未知のフィールドは捨てる）。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from scanledger.errors import (
    CustomValidationError,
    LengthError,
    MissingFieldError,
    RangeError,
    TypeMismatchError,
    ValidationError,
)

Check = Callable[[Any], Any]
Schema = Mapping[str, "FieldRule"]


@dataclass(frozen=True)
class FieldRule:
    type: str  # string / number / boolean / object
    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    max_length: Optional[int] = None
    properties: Optional[Schema] = None
    check: Optional[Check] = None


def _type_matches(kind: str, value: Any) -> bool:
    if kind == "string":
        return isinstance(value, str)
    if kind == "number":
        # bool は int のサブクラスだが数値として扱わない
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == "boolean":
        return isinstance(value, bool)
    if kind == "object":
        return isinstance(value, Mapping)
    raise ValueError(f"Unknown field type in schema: {kind}")


def validate_object(data: Mapping[str, Any], schema: Schema, prefix: str = "") -> dict[str, Any]:
    validated: dict[str, Any] = {}
    for key, rule in schema.items():
        name = f"{prefix}{key}"
        value = data.get(key)

        if value is None:
            if rule.required:
                raise MissingFieldError(name)
            continue

        if not _type_matches(rule.type, value):
            raise TypeMismatchError(name, rule.type)

        if rule.type == "string" and rule.max_length is not None and len(value) > rule.max_length:
            raise LengthError(f"Field {name} exceeds maximum length of {rule.max_length}", name)

        if rule.type == "number":
            if rule.min is not None and value < rule.min:
                raise RangeError(f"Field {name} must be at least {rule.min:g}", name)
            if rule.max is not None and value > rule.max:
                raise RangeError(f"Field {name} must be at most {rule.max:g}", name)

        if rule.type == "object" and rule.properties is not None:
            value = validate_object(value, rule.properties, prefix=f"{name}.")

        if rule.check is not None:
            try:
                outcome = rule.check(value)
            except ValueError as e:
                raise CustomValidationError(name, str(e)) from e
            if outcome is not True and outcome is not None:
                raise CustomValidationError(name, str(outcome))

        validated[key] = value
    return validated


class CommandGate:
    """操作名ごとのスキーマで入力を検証する。"""

    def __init__(self, schemas: Mapping[str, Schema]) -> None:
        self.schemas = dict(schemas)

    def validate(self, operation: str, payload: Any) -> dict[str, Any]:
        schema = self.schemas.get(operation)
        if schema is None:
            raise ValidationError(f"No validation schema for operation: {operation}")
        if not isinstance(payload, Mapping):
            raise TypeMismatchError("payload", "object")
        return validate_object(payload, schema)
