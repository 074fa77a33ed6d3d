"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from agentshelf.index.ranking import TOKEN_BUDGET


def _get_default_packages_dir() -> Path:
    """Get the default packages directory for the current working context."""
    # Project-local installs take precedence
    local_dir = Path(".agentshelf/packages")
    if local_dir.exists():
        return local_dir

    return Path.home() / ".agentshelf" / "packages"


@dataclass(slots=True)
class AppConfig:
    packages_dir: Path | None = None
    token_budget: int = TOKEN_BUDGET

    def __post_init__(self) -> None:
        if self.packages_dir is None:
            self.packages_dir = _get_default_packages_dir()

    def resolve_packages_dir(self, base_dir: Path | None = None) -> Path:
        if self.packages_dir is None:
            self.packages_dir = _get_default_packages_dir()
        if Path(self.packages_dir).is_absolute() or base_dir is None:
            return Path(self.packages_dir)
        return base_dir / self.packages_dir
