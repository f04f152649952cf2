from .base import BaseRepository
from .evaluation_repository import EvaluationRepository

__all__ = [
    "BaseRepository",
    "EvaluationRepository",
]
