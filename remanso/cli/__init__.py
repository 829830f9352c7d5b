"""Command-line interface for publishing Markdown documents to a PDS.

This package provides the `remanso` CLI tool. It ties the local document
scan, change detection, the persisted state file and the PDS record
operations into the publish workflow, with progress output and exit codes.
"""

from .publish_command import PublishCommand
from .sync_command import SyncCommand
from .config import StateManager
from .models import (
    ExitCode,
    StateEntry,
    PublisherState,
    PlanEntry,
    ChangeDetectionResult,
    DeletionInfo,
    PublishSummary,
    SyncSummary,
)
from .errors import (
    CLIError,
    ConfigNotFoundError,
    StateError,
    StateFilesystemError,
)

__all__ = [
    'PublishCommand',
    'SyncCommand',
    'StateManager',
    'ExitCode',
    'StateEntry',
    'PublisherState',
    'PlanEntry',
    'ChangeDetectionResult',
    'DeletionInfo',
    'PublishSummary',
    'SyncSummary',
    'CLIError',
    'ConfigNotFoundError',
    'StateError',
    'StateFilesystemError',
]
