"""Pytest configuration for StegForge."""
import sys
from pathlib import Path

import pytest

from stegforge.base.config import ScanConfig, StegForgeConfig, StorageConfig, set_config
from stegforge.toolkit.filetype import FileCategory, FileRecord
from stegforge.toolkit.registry import ALL, CommandSpec, ToolDescriptor

ENV_VARS = (
    "STEGFORGE_TOOL_TIMEOUT",
    "STEGFORGE_OUTPUT_DIR",
    "STEGFORGE_DATA_DIR",
    "STEGFORGE_LOG_LEVEL",
    "STEGFORGE_LOG_FILE",
    "STEGFORGE_MAX_OUTPUT_LINES",
)

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep every test's artifacts and wordlists under its own tmp_path."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    config = StegForgeConfig(
        scan=ScanConfig(output_dir=tmp_path / "output"),
        storage=StorageConfig(base_dir=tmp_path / "data"),
    )
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def png_file(tmp_path) -> Path:
    path = tmp_path / "sample.png"
    path.write_bytes(PNG_HEADER)
    return path


@pytest.fixture
def png_record(png_file) -> FileRecord:
    return FileRecord(
        path=str(png_file),
        name=png_file.name,
        size=png_file.stat().st_size,
        category=FileCategory.PNG,
        mime_type="image/png",
        extension=".png",
    )


@pytest.fixture
def python_tool():
    """Factory for descriptors that run a snippet with the current interpreter."""
    def make(name, code, category="general", applies_to=ALL):
        def build(fp, opts):
            return CommandSpec((sys.executable, "-c", code, fp))
        return ToolDescriptor(
            name=name,
            binary=sys.executable,
            category=category,
            build=build,
            applies_to=applies_to,
        )
    return make
