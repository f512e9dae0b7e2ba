"""Propagation engine: copier, source checkout, target state machine, orchestrator."""

from reposync.propagation.copier import Copier, sync_path
from reposync.propagation.git_operations import GitOperations
from reposync.propagation.orchestrator import SyncOrchestrator
from reposync.propagation.registry import HandlerRegistry
from reposync.propagation.source import SourceProvider
from reposync.propagation.target import TargetController
from reposync.propagation.workspace import WorkspaceManager

__all__ = [
    "Copier",
    "sync_path",
    "GitOperations",
    "WorkspaceManager",
    "SourceProvider",
    "TargetController",
    "HandlerRegistry",
    "SyncOrchestrator",
]
