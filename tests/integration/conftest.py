"""Pytest configuration and fixtures for integration tests.

Provides an in-memory PDS, a recording output handler and a factory for
on-disk projects, plus runners for the two commands wired to them.
"""

from pathlib import Path
from typing import Callable, Dict, Optional

import pytest
from rich.console import Console

from remanso.cli.models import ExitCode
from remanso.cli.output import OutputHandler
from remanso.cli.publish_command import PublishCommand
from remanso.cli.sync_command import SyncCommand
from tests.helpers.fake_pds import FakePDS
from tests.helpers.project_setup import write_project


@pytest.fixture
def fake_pds() -> FakePDS:
    return FakePDS()


@pytest.fixture
def output() -> OutputHandler:
    """OutputHandler recording to an in-memory console at info verbosity."""
    handler = OutputHandler(verbosity=1, no_color=True)
    handler.console = Console(record=True, no_color=True, width=200)
    return handler


@pytest.fixture
def project(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing remanso.yaml and documents; returns the config path."""
    def _project(documents: Dict[str, str], extra_config: Optional[str] = None) -> Path:
        return write_project(tmp_path, documents, extra_config)
    return _project


@pytest.fixture
def run_publish(fake_pds: FakePDS, output: OutputHandler) -> Callable[..., ExitCode]:
    """Run PublishCommand against the fake PDS."""
    def _run(config_path: Path, force: bool = False, dry_run: bool = False) -> ExitCode:
        command = PublishCommand(config_path=str(config_path), output_handler=output, api=fake_pds)
        return command.run(force=force, dry_run=dry_run)
    return _run


@pytest.fixture
def run_sync(fake_pds: FakePDS, output: OutputHandler) -> Callable[..., ExitCode]:
    """Run SyncCommand against the fake PDS."""
    def _run(config_path: Path, update_frontmatter: bool = False, dry_run: bool = False) -> ExitCode:
        command = SyncCommand(config_path=str(config_path), output_handler=output, api=fake_pds)
        return command.run(update_frontmatter=update_frontmatter, dry_run=dry_run)
    return _run
