"""Base model for beacon payloads and device records.

Every beacon model inherits from :class:`BeaconBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase browser keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that strips sentinel values
  (``None``, ``""``, ``"--"``, ``"undefined"``, NaN) and non-mapping
  input so the field default is used.
* Post-construction sentinel normalisation via ``_SENTINEL_RULES``,
  resetting a field to its default rather than to ``None``.

Records are frozen; the session store replaces them with
``model_copy(update=...)`` instead of mutating them in place.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated, Any, ClassVar

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

# Sentinel strings browsers and scripts send for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan", "null", "undefined"})


def is_negative(value: int | float) -> bool:
    """Return ``True`` when *value* is negative (e.g. ``-1`` sentinel)."""
    return value < 0


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
"""Datetime that is always timezone-aware (naive input is taken as UTC)."""


def utcnow() -> datetime:
    return datetime.now(UTC)


class BeaconBaseModel(BaseModel):
    """Base for beacon payload and record models."""

    _SENTINEL_RULES: ClassVar[dict[str, Callable[..., bool]]] = {}
    """Per-field sentinel predicates.

    Subclasses override this to declare ``{"field_name": predicate}``
    pairs. After model construction a field whose value matches its
    predicate is reset to the field default.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_beacon_values(cls, values: Any) -> Any:
        """Strip sentinel values; anything that is not a mapping becomes empty."""
        if isinstance(values, BaseModel):
            return values
        if not isinstance(values, dict):
            return {}
        return BeaconBaseModel._clean_dict(values)

    @model_validator(mode="after")
    def _normalise_sentinels(self) -> BeaconBaseModel:
        sentinel_rules: dict[str, Callable[..., bool]] = getattr(type(self), "_SENTINEL_RULES", {})
        fields = type(self).model_fields
        for field_name, predicate in sentinel_rules.items():
            val = getattr(self, field_name, None)
            if val is not None and predicate(val):
                default = fields[field_name].get_default(call_default_factory=True)
                object.__setattr__(self, field_name, default)
        return self
