"""Service layer for fieldreg."""

from .pipeline import ExtractionPlan, MetadataPipeline

__all__ = ["ExtractionPlan", "MetadataPipeline"]
