"""Generator configuration.

Configuration can be built programmatically or read from the
``[tool.masquerade]`` table of a TOML file such as ``pyproject.toml``:

```toml
[tool.masquerade]
work_dir = "build/generated"   # where temporary source directories are created
module_prefix = "masquerade.generated"
class_suffix = "Impl"
optimize = -1                  # py_compile optimisation level
log_source = false             # log every synthesized unit at DEBUG
```

Usage:
    from masquerade.config import GeneratorConfig, load_generator_config

    config = load_generator_config(Path("pyproject.toml"))
    generator = ClassGenerator(hooks, config)
"""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

__all__ = ["GeneratorConfig", "load_generator_config"]


@dataclass(frozen=True)
class GeneratorConfig:
    """Settings for a :class:`~masquerade.generator.ClassGenerator`.

    Attributes:
        work_dir: Directory in which per-generation temporary directories are
            created. ``None`` uses the system temporary directory.
        module_prefix: Dotted prefix of the names generated modules load under.
        class_suffix: Appended to the contract name to name the generated class.
        optimize: Optimisation level passed to the byte compiler.
        log_source: Whether to log each synthesized unit at ``DEBUG`` level.
    """

    work_dir: Optional[Path] = None
    module_prefix: str = "masquerade.generated"
    class_suffix: str = "Impl"
    optimize: int = -1
    log_source: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "work_dir": str(self.work_dir) if self.work_dir else None,
            "module_prefix": self.module_prefix,
            "class_suffix": self.class_suffix,
            "optimize": self.optimize,
            "log_source": self.log_source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeneratorConfig":
        """Create from dictionary, ignoring unknown keys."""
        defaults = cls()
        work_dir = data.get("work_dir")
        return cls(
            work_dir=Path(work_dir).expanduser() if work_dir else None,
            module_prefix=data.get("module_prefix", defaults.module_prefix),
            class_suffix=data.get("class_suffix", defaults.class_suffix),
            optimize=data.get("optimize", defaults.optimize),
            log_source=data.get("log_source", defaults.log_source),
        )


def load_generator_config(path: Path) -> GeneratorConfig:
    """Load configuration from the ``[tool.masquerade]`` table of a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        The configuration, or defaults when the file or the table is absent.
    """
    if not path.exists():
        return GeneratorConfig()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    return GeneratorConfig.from_dict(data.get("tool", {}).get("masquerade", {}))
