"""Non-reentrant execution guard for the engine's mutating entry points."""

from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator

from .core import ReentrantCall


class ReentrancyGuard:
    """
    A scoped lock that refuses nested acquisition.

    Token and feed calls are the only points where control leaves the
    engine; a collaborator that calls back into a guarded entry point from
    there gets ReentrantCall instead of seeing a half-applied operation.

    Example:
        guard = ReentrancyGuard()
        with guard.hold():
            ...  # nested guard.hold() raises ReentrantCall
    """

    def __init__(self):
        self._entered = False

    @property
    def locked(self) -> bool:
        return self._entered

    @contextmanager
    def hold(self) -> Iterator[None]:
        if self._entered:
            raise ReentrantCall("Reentrant call into a guarded operation")
        self._entered = True
        try:
            yield
        finally:
            self._entered = False
