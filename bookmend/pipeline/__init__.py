"""bookmend pipeline package.

This package contains the run facade, the sequential transformation loop,
cancellation signalling, artifact payload helpers, and stage telemetry.
"""

from .cancellation import CancellationToken
from .runner import BookmendPipeline
from .transformation import TransformationOrchestrator

__all__ = ["BookmendPipeline", "CancellationToken", "TransformationOrchestrator"]
