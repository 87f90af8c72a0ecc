"""Analyzer configuration.

Settings come from defaults, an optional YAML (or JSON) file loaded with
``yaml.safe_load``, and finally command-line overrides. Keys may be written
in camelCase or snake_case.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .constants import (
    DEFAULT_CONTROLLER_PATTERNS,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_FORM_BEAN_SUFFIXES,
    DEFAULT_OUTPUT_DIR,
    FALLBACK_CONTROLLER_PATTERN,
    FALLBACK_FORM_BEAN_SUFFIX,
)

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class ConfigurationError(ValueError):
    """Fatal configuration or input problem; the run cannot start."""


def _clean(values: Optional[Iterable[Any]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


@dataclass
class NamingConventions:
    """Page-name to class-name conventions.

    ``jsp_to_controller_patterns`` are format strings with one ``%s``
    placeholder for the page base name.
    """

    jsp_to_controller_patterns: List[str] = field(
        default_factory=lambda: list(DEFAULT_CONTROLLER_PATTERNS)
    )
    form_bean_suffixes: List[str] = field(
        default_factory=lambda: list(DEFAULT_FORM_BEAN_SUFFIXES)
    )

    def normalize(self) -> "NamingConventions":
        self.jsp_to_controller_patterns = _clean(self.jsp_to_controller_patterns) or [FALLBACK_CONTROLLER_PATTERN]
        self.form_bean_suffixes = _clean(self.form_bean_suffixes) or [FALLBACK_FORM_BEAN_SUFFIX]
        return self


@dataclass
class AnalyzerConfig:
    root_dir: Optional[str] = None
    output_dir: str = DEFAULT_OUTPUT_DIR
    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    struts_action_packages: List[str] = field(default_factory=list)
    spring_controller_packages: List[str] = field(default_factory=list)
    naming_conventions: NamingConventions = field(default_factory=NamingConventions)
    # None keeps every synthesized fallback candidate
    max_fallback_candidates: Optional[int] = None

    def normalize(self) -> "AnalyzerConfig":
        self.include_patterns = _clean(self.include_patterns)
        self.exclude_patterns = _clean(self.exclude_patterns)
        self.struts_action_packages = _clean(self.struts_action_packages)
        self.spring_controller_packages = _clean(self.spring_controller_packages)
        self.naming_conventions.normalize()
        self.output_dir = (self.output_dir or "").strip() or DEFAULT_OUTPUT_DIR
        if self.max_fallback_candidates is not None and self.max_fallback_candidates < 0:
            raise ConfigurationError("max_fallback_candidates must be zero or positive")
        return self

    @property
    def configured_packages(self) -> List[str]:
        """Action and controller packages, in configuration order."""
        packages: List[str] = []
        for package in self.struts_action_packages + self.spring_controller_packages:
            if package not in packages:
                packages.append(package)
        return packages

    def validate_root(self) -> str:
        """Return the absolute root directory or raise ConfigurationError."""
        if not self.root_dir:
            raise ConfigurationError("No root directory configured")
        root = os.path.abspath(self.root_dir)
        if not os.path.exists(root):
            raise ConfigurationError(f"Root directory does not exist: {root}")
        if not os.path.isdir(root):
            raise ConfigurationError(f"Root path is not a directory: {root}")
        return root


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY_RE.sub("_", str(key)).replace("-", "_").lower()


def _snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_snake_case(k): v for k, v in data.items()}


def config_from_dict(data: Optional[Dict[str, Any]]) -> AnalyzerConfig:
    """Merge a parsed document over the defaults. Absent keys keep defaults."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration document must be a mapping")
    values = _snake_keys(data)
    config = AnalyzerConfig()

    if values.get("root_dir") is not None:
        config.root_dir = str(values["root_dir"])
    if values.get("output_dir") is not None:
        config.output_dir = str(values["output_dir"])
    for key in ("include_patterns", "exclude_patterns", "struts_action_packages", "spring_controller_packages"):
        if values.get(key) is not None:
            setattr(config, key, _clean(values[key]))
    if values.get("max_fallback_candidates") is not None:
        try:
            config.max_fallback_candidates = int(values["max_fallback_candidates"])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid max_fallback_candidates: {values['max_fallback_candidates']!r}") from e

    naming = values.get("naming_conventions")
    if naming is not None:
        if not isinstance(naming, dict):
            raise ConfigurationError("naming_conventions must be a mapping")
        naming_values = _snake_keys(naming)
        if naming_values.get("jsp_to_controller_patterns") is not None:
            config.naming_conventions.jsp_to_controller_patterns = _clean(naming_values["jsp_to_controller_patterns"])
        if naming_values.get("form_bean_suffixes") is not None:
            config.naming_conventions.form_bean_suffixes = _clean(naming_values["form_bean_suffixes"])

    return config.normalize()


def load_config(path: Optional[str]) -> AnalyzerConfig:
    """Load configuration from a YAML or JSON file.

    Args:
        path: Config file path, or None for defaults only

    Returns:
        Normalized AnalyzerConfig

    Raises:
        ConfigurationError: if the file is missing, unreadable or malformed
    """
    if not path:
        return AnalyzerConfig().normalize()
    if not os.path.isfile(path):
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed config file {path}: {e}") from e
    logger.debug(f"Loaded configuration from {path}")
    return config_from_dict(data)


def apply_cli_overrides(
    config: AnalyzerConfig,
    root_dir: Optional[str] = None,
    output_dir: Optional[str] = None,
    include_patterns: Optional[List[str]] = None,
    exclude_patterns: Optional[List[str]] = None,
) -> AnalyzerConfig:
    """Command-line values win over file values when given."""
    if root_dir:
        config.root_dir = root_dir
    if output_dir:
        config.output_dir = output_dir
    if include_patterns:
        config.include_patterns = _split_patterns(include_patterns)
    if exclude_patterns:
        config.exclude_patterns = _split_patterns(exclude_patterns)
    return config.normalize()


def _split_patterns(values: List[str]) -> List[str]:
    patterns: List[str] = []
    for value in values:
        patterns.extend(part for part in value.split(","))
    return _clean(patterns)
