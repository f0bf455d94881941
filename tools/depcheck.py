from __future__ import annotations

import argparse
import ast
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

SRC_ROOT = Path(__file__).resolve().parents[1] / "src" / "fop"

_FRAMEWORKS = frozenset(
    {
        "fastapi",
        "starlette",
        "sqlalchemy",
        "alembic",
        "psycopg",
        "redis",
        "httpx",
        "requests",
        "opentelemetry",
    }
)

# Layer name -> modules it must never import.
LAYER_RULES: dict[str, frozenset[str]] = {
    "domain": _FRAMEWORKS
    | {"pydantic", "prometheus_client", "fop.api", "fop.application", "fop.infrastructure"},
    "application": _FRAMEWORKS | {"fop.api", "fop.infrastructure"},
}


@dataclass(frozen=True)
class Violation:
    file_path: Path
    line: int
    module: str
    layer: str


def _python_files(root: Path) -> Iterable[Path]:
    if root.is_file() and root.suffix == ".py":
        yield root
        return
    if root.is_dir():
        yield from sorted(root.rglob("*.py"))


def _matches(module: str, forbidden: frozenset[str]) -> bool:
    return any(module == name or module.startswith(f"{name}.") for name in forbidden)


def _imported_modules(tree: ast.AST) -> Iterable[tuple[int, str]]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            yield node.lineno, node.module


def scan_file(file_path: Path, layer: str) -> list[Violation]:
    forbidden = LAYER_RULES[layer]
    tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
    return [
        Violation(file_path=file_path, line=line, module=module, layer=layer)
        for line, module in _imported_modules(tree)
        if _matches(module, forbidden)
    ]


def find_violations(targets: Sequence[tuple[str, Path]]) -> list[Violation]:
    violations: list[Violation] = []
    for layer, path in targets:
        for file_path in _python_files(path):
            violations.extend(scan_file(file_path, layer))
    return violations


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Checks that the inner layers of fop stay free of outer-layer imports."
    )
    parser.add_argument(
        "--path",
        action="append",
        default=[],
        help="Path to scan (repeatable). Defaults to every layer under src/fop.",
    )
    parser.add_argument(
        "--layer",
        choices=sorted(LAYER_RULES),
        default="domain",
        help="Rule set applied to --path entries.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.path:
        targets = [(args.layer, Path(item)) for item in args.path]
    else:
        targets = [(layer, SRC_ROOT / layer) for layer in LAYER_RULES]

    violations = find_violations(targets)
    if not violations:
        print("depcheck passed")
        return 0

    print("depcheck failed: forbidden imports detected")
    for violation in violations:
        print(f"{violation.file_path}:{violation.line} [{violation.layer}] -> {violation.module}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
