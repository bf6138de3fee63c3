# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the checklint configuration file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from checklint.compiler.resolver import DEFAULT_ENV_IDENTIFIERS

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".checklint.yaml"

DEFAULT_TARGET_TYPES: frozenset[str] = frozenset({"cluster", "host"})
DEFAULT_PROVIDERS: frozenset[str] = frozenset({"aws", "azure", "gcp", "kvm", "vmware", "nutanix", "default"})


class ConfigurationError(Exception):
    """Raised when configuration is invalid, including unknown rule names."""


@dataclass(frozen=True)
class LinkSettings:
    """Network behaviour of the link-validity rule.

    Attributes:
        timeout: Seconds allowed for a single request attempt.
        retries: Additional attempts after the first failed one.
        backoff: Base delay in seconds; retry ``n`` waits ``backoff * 2**(n - 1)``.
        max_redirects: Redirects followed before a link counts as unreachable.
        concurrency: Maximum number of links checked at the same time.
        deadline: Overall seconds allowed for checking all links of a Check,
            or None for no limit.
    """

    timeout: float = 10.0
    retries: int = 2
    backoff: float = 0.5
    max_redirects: int = 5
    concurrency: int = 8
    deadline: float | None = 60.0


@dataclass(frozen=True)
class Settings:
    """The complete linter configuration.

    Attributes:
        strict: Reject unknown fields while loading a Check.
        include_rules: Rules to run, or None to run all registered rules.
        exclude_rules: Rules to skip.
        env_identifiers: Identifiers accepted after ``env.``.
        target_types: Accepted ``metadata.target_type`` values.
        providers: Accepted ``metadata.provider`` entries.
        links: Network settings for link checking.
    """

    strict: bool = True
    include_rules: frozenset[str] | None = None
    exclude_rules: frozenset[str] = frozenset()
    env_identifiers: frozenset[str] = DEFAULT_ENV_IDENTIFIERS
    target_types: frozenset[str] = DEFAULT_TARGET_TYPES
    providers: frozenset[str] = DEFAULT_PROVIDERS
    links: LinkSettings = field(default_factory=LinkSettings)


def load_settings(path: Path) -> Settings:
    """Load and parse a checklint configuration file.

    Args:
        path: Path to the `.checklint.yaml` file.

    Returns:
        A Settings instance populated from the file.

    Raises:
        ConfigurationError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}") from None
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file: {exc}") from exc

    return parse_settings(text, source_label=str(path))


def parse_settings(text: str, source_label: str = "<string>") -> Settings:
    """Parse configuration YAML text into Settings.

    An empty document yields the default settings.

    Raises:
        ConfigurationError: If the YAML is invalid or a field has the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigurationError(f"{source_label}: configuration must be a YAML mapping")

    unknown = set(data) - _TOP_LEVEL_KEYS
    if unknown:
        raise ConfigurationError(f"{source_label}: unknown configuration key(s): {', '.join(sorted(unknown))}")

    defaults = Settings()
    include_rules = None
    exclude_rules: frozenset[str] = frozenset()
    if "rules" in data:
        rules = data["rules"]
        if not isinstance(rules, dict):
            raise ConfigurationError(f"{source_label}: 'rules' must be a mapping")
        if "include" in rules:
            include_rules = frozenset(_string_list(rules, "include", f"{source_label}: rules"))
        if "exclude" in rules:
            exclude_rules = frozenset(_string_list(rules, "exclude", f"{source_label}: rules"))

    env_identifiers = defaults.env_identifiers
    if "env-identifiers" in data:
        env_identifiers = env_identifiers | frozenset(_string_list(data, "env-identifiers", source_label))

    target_types = defaults.target_types
    if "target-types" in data:
        target_types = frozenset(_string_list(data, "target-types", source_label))

    providers = defaults.providers
    if "providers" in data:
        providers = frozenset(_string_list(data, "providers", source_label))

    strict = defaults.strict
    if "strict" in data:
        if not isinstance(data["strict"], bool):
            raise ConfigurationError(f"{source_label}: 'strict' must be a boolean")
        strict = data["strict"]

    links = defaults.links
    if "links" in data:
        links = _parse_links(data["links"], f"{source_label}: links")

    return Settings(
        strict=strict,
        include_rules=include_rules,
        exclude_rules=exclude_rules,
        env_identifiers=env_identifiers,
        target_types=target_types,
        providers=providers,
        links=links,
    )


# ################
# Implementation
# ################

_TOP_LEVEL_KEYS = frozenset({"strict", "rules", "env-identifiers", "target-types", "providers", "links"})


def _string_list(mapping: dict[str, object], key: str, source_label: str) -> list[str]:
    """Extract a list of strings, raising ConfigurationError if mistyped."""
    value = mapping[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"{source_label}: '{key}' must be a list of strings")
    return value


def _number(mapping: dict[str, object], key: str, source_label: str, *, minimum: float) -> float:
    value = mapping[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{source_label}: '{key}' must be a number")
    if value < minimum:
        raise ConfigurationError(f"{source_label}: '{key}' must be at least {minimum:g}")
    return value


def _parse_links(entry: object, location: str) -> LinkSettings:
    """Parse the ``links`` section into LinkSettings."""
    if not isinstance(entry, dict):
        raise ConfigurationError(f"{location} must be a YAML mapping")
    defaults = LinkSettings()
    unknown = set(entry) - {"timeout", "retries", "backoff", "max-redirects", "concurrency", "deadline"}
    if unknown:
        raise ConfigurationError(f"{location}: unknown key(s): {', '.join(sorted(unknown))}")

    deadline = defaults.deadline
    if "deadline" in entry:
        deadline = None if entry["deadline"] is None else float(_number(entry, "deadline", location, minimum=0))

    return LinkSettings(
        timeout=float(_number(entry, "timeout", location, minimum=0)) if "timeout" in entry else defaults.timeout,
        retries=int(_number(entry, "retries", location, minimum=0)) if "retries" in entry else defaults.retries,
        backoff=float(_number(entry, "backoff", location, minimum=0)) if "backoff" in entry else defaults.backoff,
        max_redirects=(
            int(_number(entry, "max-redirects", location, minimum=0))
            if "max-redirects" in entry
            else defaults.max_redirects
        ),
        concurrency=(
            int(_number(entry, "concurrency", location, minimum=1)) if "concurrency" in entry else defaults.concurrency
        ),
        deadline=deadline,
    )
