"""
Test fixtures for History Grep.

Provides reusable test infrastructure including:
- GitHistoryRepository: Real git repositories with scripted histories
"""

from .git_history_repository import GitHistoryRepository

__all__ = ["GitHistoryRepository"]
