"""Extraction profile resolution."""

from fieldreg.resolution.profiles import (
    FieldTiers,
    ProfileResolver,
    ResolvedField,
    ResolvedFields,
    group_by_tier,
    resolve,
)

__all__ = [
    "FieldTiers",
    "ProfileResolver",
    "ResolvedField",
    "ResolvedFields",
    "group_by_tier",
    "resolve",
]
