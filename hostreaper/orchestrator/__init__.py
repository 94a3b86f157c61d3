"""Orchestrator host API client."""

from .client import OrchestratorClient

__all__ = ["OrchestratorClient"]
