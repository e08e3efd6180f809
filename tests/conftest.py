from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    """Write the small text fixture used by the multipart tests."""

    path = tmp_path / "test"
    path.write_bytes(b"This is a test file")
    return path


@pytest.fixture
def second_text_file(tmp_path: Path) -> Path:
    path = tmp_path / "test2"
    path.write_bytes(b"this is another test")
    return path


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    """Provide a binary payload that is not valid UTF-8."""

    path = tmp_path / "image.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\xff\xd9")
    return path


@pytest.fixture
def runner() -> CliRunner:
    """Provide a Click runner configured for CLI smoke tests."""

    return CliRunner()
