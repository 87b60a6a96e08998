"""Structured output contracts sent to the extraction backend."""

from pipeline.schemas.base import ExtractionSchema, SchemaField
from pipeline.schemas.plan_summary import PLAN_SUMMARY_SCHEMA

__all__ = ["ExtractionSchema", "PLAN_SUMMARY_SCHEMA", "SchemaField"]
