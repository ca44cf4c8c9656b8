"""
Core library: Reusable, infrastructure-agnostic components.

Modules:
    errors      - Exception hierarchy and Kafka error classification
    logging     - Structured JSON logging with message context
    utils       - Shared serialization helpers

Design Principles:
    - No dependencies on a specific broker client beyond error classification
    - All modules are independently testable
    - Type hints throughout
"""

from .types import ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
]
