from pathlib import Path

import pytest


@pytest.fixture
def make_file(tmp_path):
    def _make(rel: str, content="") -> Path:
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_bytes(content.encode("utf-8"))
        return path

    return _make
