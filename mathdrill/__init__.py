"""MathDrill package initialization.

Arithmetic speed drills: constrained question generation, answer diagnosis,
timed session scoring and personal-best history.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .drills.question import Question
from .drills.generator import QuestionGenerator
from .policy.classifier import ErrorClassifier, ErrorType
from .app.session_engine import SessionEngine
from .config.config import DrillConfig

__all__ = [
    "__version__",
    "Question",
    "QuestionGenerator",
    "ErrorClassifier",
    "ErrorType",
    "SessionEngine",
    "DrillConfig",
]
