"""
Serialization helpers for BuildSetup.

A build setup is kept in YAML:

    defines:
      GENERIC: true
      BUNDLE_VERSION: "1.2.3"
    mkdirs: [build/generic/web]
    copy:
      - [web/images, build/generic/web]
    preprocess:
      - [web/viewer.html, build/generic/web]
    preprocess_css:
      - [generic, web/viewer.css, build/generic/web/viewer.css]

Everything goes through an explicit intermediate dict so the loaded
structure is checked once, here.
"""
from __future__ import annotations

from typing import Any, Dict, List

import yaml

from buildpp.errors import ConfigError
from buildpp.model import BuildSetup


def _pairs(d: Dict[str, Any], key: str, arity: int) -> List[List[str]]:
    items = d.get(key) or []
    if not isinstance(items, list):
        raise ConfigError(f"'{key}' must be a list")
    result = []
    for item in items:
        if not isinstance(item, (list, tuple)) or len(item) != arity:
            raise ConfigError(f"Each '{key}' entry must have {arity} items, got {item!r}")
        result.append([str(part) for part in item])
    return result


def setup_from_dict(d: Any) -> BuildSetup:
    if d is None:
        return BuildSetup()
    if not isinstance(d, dict):
        raise ConfigError(f"Build setup must be a mapping, got {type(d).__name__}")

    defines = d.get("defines") or {}
    if not isinstance(defines, dict):
        raise ConfigError("'defines' must be a mapping")

    mkdirs = d.get("mkdirs") or []
    if not isinstance(mkdirs, list):
        raise ConfigError("'mkdirs' must be a list")

    css_key = "preprocess_css" if "preprocess_css" in d else "preprocessCSS"
    return BuildSetup(
        defines={str(k): v for k, v in defines.items()},
        mkdirs=[str(m) for m in mkdirs],
        copy=_pairs(d, "copy", 2),
        preprocess=_pairs(d, "preprocess", 2),
        preprocess_css=_pairs(d, css_key, 3),
        build_dir=d.get("build_dir"),
    )


def setup_to_dict(s: BuildSetup) -> Dict[str, Any]:
    return {
        "defines": dict(s.defines),
        "mkdirs": list(s.mkdirs),
        "copy": [list(p) for p in s.copy],
        "preprocess": [list(p) for p in s.preprocess],
        "preprocess_css": [list(t) for t in s.preprocess_css],
        "build_dir": s.build_dir,
    }


def setup_from_yaml(s: str) -> BuildSetup:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML build setup: {e}") from e
    return setup_from_dict(d)


def setup_to_yaml(s: BuildSetup) -> str:
    return yaml.safe_dump(setup_to_dict(s))


def load_defines(path: str) -> Dict[str, Any]:
    """Load a flat YAML mapping of defines from a file."""
    with open(path, "r", encoding="utf-8") as f:
        d = yaml.safe_load(f)
    if d is None:
        return {}
    if not isinstance(d, dict):
        raise ConfigError(f"Defines file {path} must contain a mapping")
    return {str(k): v for k, v in d.items()}


def load_setup(path: str) -> BuildSetup:
    with open(path, "r", encoding="utf-8") as f:
        return setup_from_yaml(f.read())
