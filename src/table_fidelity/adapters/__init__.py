"""Collaborator protocols and the in-memory cluster.

Provides the ``ClusterClient``, ``MutationSession`` and ``BackupPipeline``
Protocols the orchestrator drives, plus ``InMemoryCluster``, an in-process
cluster used by the CLI self-check and the tests.

Usage:
    from table_fidelity.adapters import ClusterClient, InMemoryCluster
"""

from table_fidelity.adapters.base import BackupPipeline, ClusterClient, MutationSession
from table_fidelity.adapters.memory import InMemoryCluster, InMemorySession

__all__ = [
    "BackupPipeline",
    "ClusterClient",
    "MutationSession",
    "InMemoryCluster",
    "InMemorySession",
]
