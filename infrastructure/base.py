# ============================================================================
# BASE REPOSITORY - PURE ABSTRACT CLASS
# ============================================================================
# STATUS: Infrastructure - Repository hierarchy root
# PURPOSE: Common error handling and logging for all repositories
# ============================================================================
"""
Base Repository - Pure Abstract Class.

Contains NO storage implementation details, only common error handling and
logging infrastructure.

Architecture:
    BaseRepository (this file - pure abstract)
        |
    PostgreSQLRepository
        |
    PostgreSQLEnvelopeRepository, PostgreSQLClusterLockRepository

Exports:
    BaseRepository: Abstract base class for repositories
"""

from abc import ABC
from contextlib import contextmanager
from typing import Optional
import logging

from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "BaseRepository")


class BaseRepository(ABC):
    """
    Pure abstract base repository.

    Subclasses MUST call super().__init__() before any storage setup so the
    component logger exists.
    """

    def __init__(self):
        self.logger: logging.Logger = LoggerFactory.create_logger(
            ComponentType.REPOSITORY,
            self.__class__.__name__
        )
        logger.debug(f"🏛️ {self.__class__.__name__} base initialized")

    @contextmanager
    def _error_context(self, operation: str, entity_id: Optional[str] = None):
        """
        Log any failure of the wrapped operation with its context, then re-raise.

        Args:
            operation: Human-readable description ("envelope insert", ...)
            entity_id: Envelope id or lock name being operated on

        Usage:
            with self._error_context("status update", str(envelope_id)):
                self._execute_query(query, params)
        """
        try:
            yield
        except Exception as e:
            if entity_id:
                self.logger.error(f"❌ {operation} failed for {entity_id}: {e}")
            else:
                self.logger.error(f"❌ {operation} failed: {e}")
            raise
