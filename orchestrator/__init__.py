"""
Orchestration package for running a Medium export through the conversion pipeline.

The orchestrator sequences the per-post stages and the batch loop; the report
formats the batch outcome for the console and as JSON.
"""

from .conversion_orchestrator import ConversionOrchestrator
from .conversion_report import ConversionReport

__all__ = [
    'ConversionOrchestrator',
    'ConversionReport'
]
