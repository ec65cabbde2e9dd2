from __future__ import annotations

from ._gate import require_arch_checks_enabled
from ._utils import iter_python_files, matches_prefix, parse_imports, ship_root

# Layer -> packages it must never import.
_FORBIDDEN: dict[str, tuple[str, ...]] = {
    "core": ("ship.cli", "ship.services", "ship.git", "ship.output", "typer", "rich"),
    "platform": ("ship.cli", "ship.services", "typer", "rich"),
    "git": ("ship.cli", "ship.services", "typer", "rich"),
    "output": ("ship.cli", "ship.services", "typer"),
    "services": ("ship.cli", "typer"),
}


def _violations(layer: str, forbidden: tuple[str, ...]) -> list[str]:
    root = ship_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root / layer):
        rel = file_path.relative_to(root)
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, prefix) for prefix in forbidden):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")
    return offenders


def test_layers_only_import_downwards() -> None:
    require_arch_checks_enabled()

    offenders: list[str] = []
    for layer, forbidden in _FORBIDDEN.items():
        offenders.extend(_violations(layer, forbidden))

    assert not offenders, "layering violations:\n" + "\n".join(offenders)
