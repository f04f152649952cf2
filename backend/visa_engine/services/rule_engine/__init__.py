"""Rule engine for pre-screening applicants against visa rule sets."""

from .adapter import EvaluationAdapter, merge_results
from .base import EvaluationContext, EvaluationResult, VisaPlugin
from .factory import EvaluatorFactory, normalize_visa_code
from .pipeline import GenericPreScreening, PreScreeningPipeline
from .scoring import PreScreeningScorer

__all__ = [
    "EvaluationAdapter",
    "EvaluationContext",
    "EvaluationResult",
    "EvaluatorFactory",
    "GenericPreScreening",
    "PreScreeningPipeline",
    "PreScreeningScorer",
    "VisaPlugin",
    "merge_results",
    "normalize_visa_code",
]
