"""
Core module for engine configuration and the scoring, validity, fairness
and compliance computations.

Only settings are imported at package level; import the computation modules
directly, e.g. ``from assessment_engine.core.scoring import score_dimensions``.
"""
from .config import settings

__all__ = ["settings"]
