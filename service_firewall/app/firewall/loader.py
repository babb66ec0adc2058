"""
Firewall configuration records and file loading.

A configuration is a mapping of firewall name to a record::

    main:
      path: "^/"
      debug: false
      rules:
        - ["^/login", null]
        - path: "^/admin"
          strategy: {kind: role, args: [[admin]]}
          method: GET
        - ["^/", ["role", ["user", "admin"]]]
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .errors import FirewallConfigurationError


class RuleConfig(BaseModel):
    """A single rule entry, given as a mapping or a ``[path, strategy, method]`` list."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: Union[str, re.Pattern] = Field(..., description="Pattern matched against the request url")
    strategy: Any = Field(None, description="Strategy specification, null for an open rule")
    method: Optional[str] = Field(None, description="HTTP method, null for any")

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if not 1 <= len(data) <= 3:
                raise ValueError("rule must be given as [path, strategy, method]")
            return dict(zip(("path", "strategy", "method"), data))
        return data


class FirewallConfig(BaseModel):
    """A firewall record: scope pattern, ordered rules and debug flag."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: Union[str, re.Pattern] = Field(
        ...,
        validation_alias=AliasChoices("path", "scope"),
        description="Scope pattern the firewall applies to"
    )
    rules: List[RuleConfig] = Field(default_factory=list)
    debug: bool = False


def load_firewall_config(file_path: Union[str, Path]) -> Dict[str, Any]:
    """Read firewall definitions from a YAML or JSON file."""
    path = Path(file_path)
    try:
        with path.open("r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise FirewallConfigurationError(
            f"Unable to read firewall configuration from {path}: {e}",
            {"file": str(path)}
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FirewallConfigurationError(
            f"Firewall configuration in {path} must be a mapping of firewall names",
            {"file": str(path)}
        )
    return data
