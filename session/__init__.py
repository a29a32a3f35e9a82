"""
session package

Annotation state, background store workers and the session controller.
"""

from session.state import AnnotationState
from session.worker import StoreWorker, TaskResult, TaskRunner
from session.controller import SessionController

__all__ = [
    "AnnotationState",
    "StoreWorker",
    "TaskResult",
    "TaskRunner",
    "SessionController",
]
