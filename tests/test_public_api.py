from __future__ import annotations

import blockforge
import pytest

from blockforge.errors import UnknownBlockError


def test_public_api_exposes_version_and_about() -> None:
    assert isinstance(blockforge.__version__, str)
    text = blockforge.about(print_output=False)
    assert "Frame order" in text
    assert "Stop all" in text


def test_public_api_all_contains_core_exports() -> None:
    exported = set(blockforge.__all__)
    assert "ScriptCompiler" in exported
    assert "export_project" in exported
    assert "import_project_interactive" in exported
    assert "GameRuntime" in exported
    assert "about" in exported
    assert "__version__" in exported
    for name in exported:
        assert hasattr(blockforge, name), name


def test_default_registry_rejects_unknown_blocks_with_actionable_message() -> None:
    with pytest.raises(UnknownBlockError, match="Unknown block id 'warp'"):
        blockforge.default_registry().lookup("warp")
