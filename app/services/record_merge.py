"""Default-filling merge for partial record data."""

from collections.abc import Mapping
from typing import Any

from app.models.base import Record


def merge_record(
    record_type: type[Record],
    explicit: Mapping[str, Any],
    base: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Layer ``explicit`` over ``base`` over the record type's documented defaults.

    Keys may be Python attribute names or wire names; the result is keyed by
    wire name. A key that is absent or ``None`` falls through to the next layer,
    while explicit falsy values (``False``, ``0``, ``""``) win. Unknown keys are
    dropped. Required fields with no value anywhere are left missing so model
    validation reports them.
    """
    merged = dict(record_type.defaults())
    for layer in (base or {}, explicit):
        for key, value in layer.items():
            if value is None:
                continue
            wire = record_type.wire_key(key)
            if wire is not None:
                merged[wire] = value
    return merged
