"""Pipeline entry points."""

from .orchestrator import (
    PipelineOrchestrator,
    lookup_topics,
    run_ingestion,
    run_query,
    run_scoring,
)

__all__ = [
    "PipelineOrchestrator",
    "lookup_topics",
    "run_ingestion",
    "run_query",
    "run_scoring",
]
