"""Bias scoring of stored articles."""

from .inference import BiasInferenceClient, extract_score, parse_bias_score
from .models import BiasProcessingResult, FailedItem
from .retry import RetryPolicy, invoke_with_retry
from .scorer import BiasScorer, build_scorer, extract_description, select_for_scoring

__all__ = [
    "BiasInferenceClient",
    "BiasProcessingResult",
    "BiasScorer",
    "FailedItem",
    "RetryPolicy",
    "build_scorer",
    "extract_description",
    "extract_score",
    "invoke_with_retry",
    "parse_bias_score",
    "select_for_scoring",
]
