import json

import pytest


@pytest.fixture
def make_project(tmp_path):
    def _make(package=None, files=()):
        if package is not None:
            (tmp_path / "package.json").write_text(json.dumps(package))
        for name in files:
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")
        return tmp_path

    return _make
