"""initx configuration.

Centralised, typed configuration for the scaffolding engine.  Settings use a
Pydantic v2 model so they are validated at construction time.  An
``InitxConfig`` is built once by the CLI (or by a test) and passed explicitly
into ``ProjectInitializer``; nothing in the engine reads ambient globals.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from initx.errors import ConfigError

# Environment variable -> InitxConfig field
ENV_VARS: dict[str, str] = {
    "INITX_DEFAULT_DIR": "default_parent",
    "INITX_TEMPLATES_DIR": "templates_dir",
    "INITX_PLACEHOLDER": "placeholder",
    "INITX_RUN_HOOKS": "run_hooks",
    "INITX_HOOK_TIMEOUT": "hook_timeout",
}


class InitxConfig(BaseModel):
    """Global initx configuration."""

    placeholder: str = Field(
        default="$name", description="Token replaced with the project name"
    )
    location_placeholder: str = Field(
        default="$location", description="Token replaced with the destination path"
    )
    default_parent: Path = Field(
        default=Path("."), description="Parent directory used when none is given"
    )
    templates_dir: Path | None = Field(
        default=None,
        description="Directory holding editable copies of the templates "
        "(one subdirectory per template id); the bundled trees when unset",
    )
    staging_prefix: str = Field(
        default=".initx-staging-", description="Prefix of the hidden staging directory"
    )
    run_hooks: bool = Field(
        default=True, description="Run the template's post-scaffold commands"
    )
    hook_timeout: int = Field(
        default=300, ge=1, description="Per-command timeout for post-scaffold hooks in seconds"
    )
    verbose: bool = Field(default=False, description="Print every staged entry")

    @field_validator("placeholder", "location_placeholder")
    @classmethod
    def _check_token(cls, value: str) -> str:
        if not value:
            raise ValueError("placeholder tokens must not be empty")
        return value

    @field_validator("staging_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError("staging_prefix must be a non-empty plain file name")
        return value

    @model_validator(mode="after")
    def _distinct_tokens(self) -> "InitxConfig":
        if self.placeholder == self.location_placeholder:
            raise ValueError("placeholder and location_placeholder must differ")
        return self

    @classmethod
    def from_env(cls) -> "InitxConfig":
        """Build an ``InitxConfig`` from environment variables.

        Recognised variables (all optional): see ``ENV_VARS``.

        Raises:
            ConfigError: If a variable cannot be parsed or the resulting
                settings fail validation.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("INITX_DEFAULT_DIR"):
            kwargs["default_parent"] = Path(os.environ["INITX_DEFAULT_DIR"])
        if os.environ.get("INITX_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["INITX_TEMPLATES_DIR"])
        if os.environ.get("INITX_PLACEHOLDER"):
            kwargs["placeholder"] = os.environ["INITX_PLACEHOLDER"]
        if os.environ.get("INITX_RUN_HOOKS"):
            kwargs["run_hooks"] = os.environ["INITX_RUN_HOOKS"].strip().lower() not in (
                "0",
                "false",
                "no",
                "off",
            )
        if os.environ.get("INITX_HOOK_TIMEOUT"):
            raw = os.environ["INITX_HOOK_TIMEOUT"]
            try:
                kwargs["hook_timeout"] = int(raw)
            except ValueError:
                raise ConfigError(
                    "INITX_HOOK_TIMEOUT", f"expected a whole number of seconds, got {raw!r}"
                ) from None

        try:
            return cls(**kwargs)
        except ValidationError as exc:
            raise ConfigError(_setting_names(exc), _validation_summary(exc)) from exc


def _setting_names(exc: ValidationError) -> str:
    """Environment variables behind the fields a validation error names."""
    fields = {str(loc) for err in exc.errors() for loc in err["loc"]}
    names = [env for env, field in ENV_VARS.items() if field in fields]
    return ", ".join(names) or "INITX_* environment"


def _validation_summary(exc: ValidationError) -> str:
    """One-line rendering of a pydantic validation error."""
    return "; ".join(err["msg"] for err in exc.errors())
