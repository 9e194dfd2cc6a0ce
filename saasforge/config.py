"""saasforge configuration.

Centralised, typed configuration for the build pipeline. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Global saasforge configuration.

    Instances are typically created once by the CLI entry point (usually via
    :meth:`from_env`) and then passed explicitly through the pipeline.
    """

    output_dir: Path = Field(default=Path("./output"))
    template_dir: Optional[Path] = Field(
        default=None, description="Template root; defaults to the bundled templates"
    )
    catalog_path: Optional[Path] = Field(
        default=None, description="Keyword catalog JSON; defaults to the bundled catalog"
    )
    validate_output: bool = Field(
        default=True, description="Run target-syntax validation on every rendered file"
    )
    install_command: list[str] = Field(default_factory=lambda: ["npm", "install"])
    install_timeout: int = Field(default=600, ge=10, description="Install timeout in seconds")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            SAASFORGE_OUTPUT_DIR, SAASFORGE_TEMPLATE_DIR, SAASFORGE_CATALOG,
            SAASFORGE_VALIDATE_OUTPUT, SAASFORGE_INSTALL_COMMAND,
            SAASFORGE_INSTALL_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("SAASFORGE_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["SAASFORGE_OUTPUT_DIR"])
        if os.environ.get("SAASFORGE_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["SAASFORGE_TEMPLATE_DIR"])
        if os.environ.get("SAASFORGE_CATALOG"):
            kwargs["catalog_path"] = Path(os.environ["SAASFORGE_CATALOG"])
        if os.environ.get("SAASFORGE_VALIDATE_OUTPUT"):
            kwargs["validate_output"] = (
                os.environ["SAASFORGE_VALIDATE_OUTPUT"].strip().lower() in _TRUTHY
            )
        if os.environ.get("SAASFORGE_INSTALL_COMMAND"):
            kwargs["install_command"] = shlex.split(os.environ["SAASFORGE_INSTALL_COMMAND"])
        if os.environ.get("SAASFORGE_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["SAASFORGE_INSTALL_TIMEOUT"])
        return cls(**kwargs)
