import os
import tempfile

import pytest

# Keep the progress state file and attempt log out of the working tree.
_TMP = tempfile.mkdtemp(prefix="piece-tiler-tests-")
os.environ.setdefault("PROGRESS_STATE_FILE", os.path.join(_TMP, "progress_state.json"))
os.environ.setdefault("KN_LOG_DIR", os.path.join(_TMP, "logs"))

from config import CFG  # noqa: E402


@pytest.fixture
def small_rect(monkeypatch):
    """Make the default rectangle 4 wide and 2 high (four F+B tilings)."""
    monkeypatch.setattr(CFG, "BOARD", "rectangle")
    monkeypatch.setattr(CFG, "RECT_WIDTH", 4)
    monkeypatch.setattr(CFG, "RECT_HEIGHT", 2)
    return CFG
