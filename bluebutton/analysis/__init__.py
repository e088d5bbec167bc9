"""
Analysis Module

One analysis cycle and what to do with its results:
- AnalysisOrchestrator: capture, ask the model, parse, map
- InteractionController: move to or click a detection
"""

from .orchestrator import AnalysisOrchestrator, AnalysisResult
from .interaction import InteractionController, InteractionAction, Outcome, OutcomeKind

__all__ = [
    'AnalysisOrchestrator', 'AnalysisResult',
    'InteractionController', 'InteractionAction', 'Outcome', 'OutcomeKind',
]
