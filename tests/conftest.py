"""Pytest configuration and fixtures for i3status-wrapper tests."""

import sys
from pathlib import Path
from typing import Callable

import pytest

# Make the package importable without installing it
package_root = Path(__file__).parent.parent
if str(package_root) not in sys.path:
    sys.path.insert(0, str(package_root))

from i3status_wrapper.models import CommandSpec, StatusBlock


@pytest.fixture
def make_script(tmp_path) -> Callable[[str, str], Path]:
    """Factory writing an executable shell script into a temporary directory."""
    def _make(name: str, body: str) -> Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(0o755)
        return path
    return _make


@pytest.fixture
def make_spec() -> Callable[..., CommandSpec]:
    """Factory for command specs with a short default timeout."""
    def _make(command: str, slot: int = 0, timeout: float = 5.0) -> CommandSpec:
        return CommandSpec.parse(command, slot=slot, timeout=timeout)
    return _make


@pytest.fixture
def i3status_header() -> str:
    """Header line as printed by i3status."""
    return '{"version":1}'


@pytest.fixture
def upstream_blocks():
    """Blocks as decoded from one i3status cycle."""
    return [
        StatusBlock.from_json({"name": "disk_info", "instance": "/", "full_text": "42.1 GiB"}),
        StatusBlock.from_json({"name": "load", "full_text": "0.52", "urgent": False}),
        StatusBlock.from_json({"name": "tztime", "instance": "local", "full_text": "2026-10-19 12:00:00", "border_top": 2}),
    ]


@pytest.fixture
def mock_i3status_output() -> str:
    """Three cycles of i3status output, framed exactly as i3status prints them."""
    return (
        '{"version":1}\n'
        '[\n'
        '[{"name":"load","full_text":"0.52"},{"name":"tztime","full_text":"12:00"}]\n'
        ',[{"name":"load","full_text":"0.61"},{"name":"tztime","full_text":"12:01"}]\n'
        ',[{"name":"load","full_text":"0.48","color":"#FF0000"},{"name":"tztime","full_text":"12:02"}]\n'
    )
