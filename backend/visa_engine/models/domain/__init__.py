"""Domain models for the application."""

from visa_engine.models.domain.evaluation import EvaluationRecord

__all__ = ["EvaluationRecord"]
