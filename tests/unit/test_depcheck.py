from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "tools" / "depcheck.py"


def _run(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, str(SCRIPT_PATH), *args],
        capture_output=True,
        text=True,
        check=False,
    )


@pytest.mark.parametrize(
    ("layer", "source", "module"),
    [
        ("domain", "import sqlalchemy\n", "sqlalchemy"),
        ("domain", "from pydantic import BaseModel\n", "pydantic"),
        ("domain", "from fop.application.errors import ValidationError\n", "fop.application"),
        ("application", "from fop.infrastructure.db import session\n", "fop.infrastructure"),
        ("application", "import redis\n", "redis"),
    ],
)
def test_depcheck_fails_on_forbidden_import(tmp_path: Path, layer, source, module) -> None:
    layer_dir = tmp_path / layer
    layer_dir.mkdir(parents=True, exist_ok=True)
    violating_file = layer_dir / "model.py"
    violating_file.write_text(source, encoding="utf-8")

    result = _run("--layer", layer, "--path", str(layer_dir))

    combined_output = f"{result.stdout}\n{result.stderr}"
    assert result.returncode != 0
    assert module in combined_output
    assert str(violating_file) in combined_output


def test_application_layer_may_use_pydantic(tmp_path: Path) -> None:
    module = tmp_path / "dto.py"
    module.write_text("from pydantic import BaseModel\n", encoding="utf-8")

    result = _run("--layer", "application", "--path", str(module))

    assert result.returncode == 0


def test_project_layers_pass() -> None:
    result = _run()

    assert result.returncode == 0, result.stdout
    assert "depcheck passed" in result.stdout
