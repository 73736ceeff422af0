"""
Check profiles loaded from YAML.

A profile file names check configurations:

    checks:
      pushsync-heavy:
        type: pushsync
        timeout: 10m
        options:
          upload-node-count: 3
          chunks-per-node: 5
      pushsync-light:
        _inherit: pushsync-heavy
        options:
          chunks-per-node: 1

A profile with `_inherit` takes every top-level field it does not set itself
(`type`, `timeout`, `options`) from its parent; chains are followed.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import CheckOptions, build_options
from swarmcheck_engine.checks.registry import CHECKS
from swarmcheck_engine.node.types import parse_go_duration

INHERIT_KEY = "_inherit"
_PROFILE_FIELDS = ("type", "timeout", "options")


class ProfileError(Exception):
    """Raised for an unreadable or inconsistent profile file."""

    pass


class CheckProfile(BaseModel):
    """A named, typed check configuration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    type: CheckKind
    timeout: float | None = Field(default=None, gt=0)
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_go_duration(v)
        return v

    @field_validator("options", mode="before")
    @classmethod
    def default_options(cls, v: Any) -> Any:
        return {} if v is None else v

    def build_options(self, defaults: Mapping[str, Any] | None = None) -> CheckOptions:
        """Typed options for this profile's check kind, on top of run-wide defaults."""
        raw = {**(defaults or {}), **self.options}
        if self.timeout is not None:
            raw["timeout"] = self.timeout
        try:
            return build_options(CHECKS[self.type].options_model, raw)
        except ValidationError as e:
            raise ProfileError(f"check profile {self.name}: invalid options: {e}") from e


def _resolve(name: str, raw: dict[str, dict[str, Any]], chain: tuple[str, ...] = ()) -> dict[str, Any]:
    if name in chain:
        raise ProfileError(f"check profile inheritance cycle: {' -> '.join((*chain, name))}")
    entry = raw.get(name)
    if entry is None:
        raise ProfileError(f"check profile {chain[-1] if chain else name} inherits from unknown profile {name}")

    parent_name = entry.get(INHERIT_KEY)
    merged = {k: v for k, v in entry.items() if k != INHERIT_KEY}
    if parent_name:
        parent = _resolve(parent_name, raw, (*chain, name))
        for field in _PROFILE_FIELDS:
            if merged.get(field) is None and parent.get(field) is not None:
                merged[field] = parent[field]
    return merged


def parse_profiles(document: Any) -> dict[str, CheckProfile]:
    """
    Build profiles from a parsed YAML document.

    Raises:
        ProfileError: the document is malformed or a profile is invalid
    """
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ProfileError("profile file must contain a 'checks' mapping")

    # an empty `checks:` key parses to None
    raw = document.get("checks") or {}
    if not isinstance(raw, dict):
        raise ProfileError("profile file must contain a 'checks' mapping")
    for name, entry in raw.items():
        if not isinstance(entry, dict):
            raise ProfileError(f"check profile {name} must be a mapping")

    profiles = {}
    for name in raw:
        merged = _resolve(name, raw)
        try:
            profiles[name] = CheckProfile(name=name, **merged)
        except ValidationError as e:
            raise ProfileError(f"check profile {name}: {e}") from e
    return profiles


def load_profiles(path: str | Path) -> dict[str, CheckProfile]:
    """Load check profiles from a YAML file."""
    path = Path(path)
    try:
        with path.open() as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ProfileError(f"cannot read check profiles from {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ProfileError(f"invalid YAML in {path}: {e}") from e
    return parse_profiles(document)
