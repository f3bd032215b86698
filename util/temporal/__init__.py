"""
Temporal helpers for wrapping repositories as activities and building
workflow-side proxies that call them.
"""

from .decorators import (
    SINGLE_ATTEMPT_RETRY_POLICY,
    temporal_activity_registration,
    temporal_workflow_proxy,
)

__all__ = [
    "SINGLE_ATTEMPT_RETRY_POLICY",
    "temporal_activity_registration",
    "temporal_workflow_proxy",
]
