"""Garbage collection operations."""

from .garbage_collect import GarbageCollectOperation, mark_and_sweep
from .mark import MarkPhase, mark
from .vacuum import Vacuum

__all__ = ['GarbageCollectOperation', 'mark_and_sweep', 'MarkPhase', 'mark', 'Vacuum']
