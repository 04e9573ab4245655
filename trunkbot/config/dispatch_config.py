"""
Loading and compilation of the dispatch configuration file.

The routing table, notification rules and street gazetteer are deployment
data, not code. This module reads them from YAML, validates them with
Pydantic, fills missing sections from the built-ins and compiles the
result into the immutable ``DispatchConfig`` shared by all call pipelines.
"""

import os
import re
from types import MappingProxyType
from typing import Dict, List, Optional, Pattern

import yaml
from pydantic import ValidationError

from ..models.dispatch import DispatchConfig, GroupRoute, NotificationRule
from ..models.dispatch_config import (
    PATTERN_REFERENCE_PREFIX,
    DispatchConfigModel,
    GroupRouteConfig,
    NotificationRuleConfig,
)
from ..utils.logger import get_module_logger
from ..utils.text import tokenize
from . import builtin_config
from .exceptions import ConfigurationError

logger = get_module_logger(__name__)


class DispatchConfigLoader:
    """
    Loads the dispatch configuration file and compiles it.

    A missing file means built-in tables only. A file that exists must be
    valid: YAML errors, schema violations and dangling references all fail
    fast with ``ConfigurationError``.
    """

    def __init__(self, config_file_path: Optional[str]):
        """
        Initialize the configuration loader.

        Args:
            config_file_path: Path to the YAML configuration file (None for built-ins only)
        """
        self.config_file_path = config_file_path
        logger.info(f"Initialized DispatchConfigLoader with file path: {config_file_path}")

    def load_and_validate(self) -> DispatchConfig:
        """
        Load, parse, validate and compile the configuration file.

        Returns:
            DispatchConfig: Compiled dispatch tables

        Raises:
            ConfigurationError: For any validation failures
        """
        if not self.config_file_path or not os.path.exists(self.config_file_path):
            logger.info(f"Dispatch configuration not found: {self.config_file_path}. Using built-in tables only.")
            return compile_dispatch_config(DispatchConfigModel())

        if not os.path.isfile(self.config_file_path):
            raise ConfigurationError(
                f"Configuration path {self.config_file_path} is not a file. "
                f"Please provide a path to a YAML configuration file."
            )

        try:
            raw_config = self._load_yaml_file()

            if raw_config is None:
                logger.info("Dispatch configuration file is empty. Using built-in tables only.")
                return compile_dispatch_config(DispatchConfigModel())

            if not isinstance(raw_config, dict):
                raise ConfigurationError(
                    f"Configuration file root must be a dictionary/object, got {type(raw_config).__name__}. "
                    f"Expected format: talkgroups: {{...}}, recipients: {{...}}"
                )

            config_model = DispatchConfigModel.model_validate(raw_config)
            for section in config_model.model_fields_set:
                logger.info(f"Configured section '{section}' overrides built-in defaults")

            dispatch_config = compile_dispatch_config(config_model)
            logger.info(
                f"Loaded dispatch configuration: {len(dispatch_config.talkgroup_channels)} talkgroups, "
                f"{len(dispatch_config.group_routes)} group routes, {len(dispatch_config.rules)} rules, "
                f"{len(dispatch_config.gazetteer)} streets"
            )
            return dispatch_config

        except PermissionError as e:
            error_msg = (
                f"Permission denied accessing configuration file {self.config_file_path}: {e}. "
                f"Please check file permissions and ensure the application has read access."
            )
            logger.error(error_msg)
            raise ConfigurationError(error_msg)
        except yaml.YAMLError as e:
            error_msg = self._format_yaml_error(e)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)
        except ValidationError as e:
            error_msg = self._format_validation_error(e)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)
        except ConfigurationError:
            raise
        except Exception as e:
            error_msg = (
                f"Unexpected error loading configuration from {self.config_file_path}: {e}. "
                f"Please verify the file exists, is readable, and contains valid YAML."
            )
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

    def _load_yaml_file(self) -> object:
        try:
            with open(self.config_file_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except UnicodeDecodeError as e:
            raise ConfigurationError(
                f"Configuration file {self.config_file_path} contains invalid UTF-8 encoding: {e}. "
                f"Please ensure the file is saved with UTF-8 encoding."
            )

    def _format_yaml_error(self, error: yaml.YAMLError) -> str:
        base_msg = f"Invalid YAML format in {self.config_file_path}"
        mark = getattr(error, 'problem_mark', None)
        if mark:
            base_msg += f" at line {mark.line + 1}, column {mark.column + 1}"
        return f"{base_msg}: {error}"

    def _format_validation_error(self, error: ValidationError) -> str:
        details = []
        for err in error.errors():
            field_path = " -> ".join(str(loc) for loc in err["loc"])
            details.append(f"{field_path}: {err['msg']}")
        joined = "\n  - ".join(details)
        return f"Invalid dispatch configuration in {self.config_file_path}:\n  - {joined}"


def compile_dispatch_config(config_model: DispatchConfigModel) -> DispatchConfig:
    """
    Merge a validated configuration over the built-ins and compile it.

    Args:
        config_model: Parsed configuration; sections left as None use built-ins

    Returns:
        DispatchConfig ready to be shared read-only

    Raises:
        ConfigurationError: For unknown shared patterns or channel groups
    """
    channels = _section(config_model.channels, builtin_config.BUILTIN_CHANNELS)
    channel_groups = _section(config_model.channel_groups, builtin_config.BUILTIN_CHANNEL_GROUPS)
    talkgroups = _section(config_model.talkgroups, builtin_config.BUILTIN_TALKGROUPS)
    default_channels = _section(config_model.default_channels, builtin_config.BUILTIN_DEFAULT_CHANNELS)
    gazetteer = _section(config_model.gazetteer, builtin_config.BUILTIN_GAZETTEER)
    street_modifiers = _section(config_model.street_modifiers, builtin_config.BUILTIN_STREET_MODIFIERS)
    terms = _section(config_model.transcription_terms, builtin_config.BUILTIN_TRANSCRIPTION_TERMS)

    if config_model.group_routes is not None:
        group_routes = config_model.group_routes
    else:
        group_routes = [GroupRouteConfig.model_validate(route) for route in builtin_config.BUILTIN_GROUP_ROUTES]

    if config_model.patterns is not None:
        patterns = config_model.patterns
    else:
        patterns = builtin_config.BUILTIN_PATTERNS
    compiled_patterns = {name: re.compile(pattern) for name, pattern in patterns.items()}

    if config_model.recipients is not None:
        recipients = config_model.recipients
    else:
        recipients = {
            recipient: [NotificationRuleConfig.model_validate(rule) for rule in rules]
            for recipient, rules in builtin_config.BUILTIN_RECIPIENTS.items()
        }

    rules: List[NotificationRule] = []
    # Sorted so mention order is stable across processes
    for recipient in sorted(recipients):
        for rule_config in recipients[recipient]:
            rules.append(_compile_rule(recipient, rule_config, compiled_patterns, channel_groups))

    return DispatchConfig(
        talkgroup_channels=MappingProxyType({
            int(talkgroup): tuple(dests) for talkgroup, dests in talkgroups.items()
        }),
        group_routes=tuple(
            GroupRoute(
                group=route.group.lower(),
                channels=tuple(route.channels),
                tags=frozenset(tag.lower() for tag in route.tags),
            )
            for route in group_routes
        ),
        default_channels=tuple(default_channels),
        rules=tuple(rules),
        gazetteer=tuple(gazetteer),
        channel_ids=MappingProxyType(dict(channels)),
        street_modifiers=tuple(street_modifiers),
        transcription_terms=tuple(terms),
    )


def _section(configured, builtin):
    return configured if configured is not None else builtin


def _resolve_pattern(
    value: Optional[str],
    compiled_patterns: Dict[str, Pattern[str]],
    recipient: str,
) -> Optional[Pattern[str]]:
    if value is None:
        return None
    if value.startswith(PATTERN_REFERENCE_PREFIX):
        name = value[len(PATTERN_REFERENCE_PREFIX):]
        if name not in compiled_patterns:
            raise ConfigurationError(
                f"Rule for recipient '{recipient}' references unknown pattern '{name}'. "
                f"Available patterns: {sorted(compiled_patterns)}"
            )
        return compiled_patterns[name]
    return re.compile(value)


def _compile_rule(
    recipient: str,
    rule_config: NotificationRuleConfig,
    compiled_patterns: Dict[str, Pattern[str]],
    channel_groups: Dict[str, List[str]],
) -> NotificationRule:
    channels = set(rule_config.channels)
    for group in rule_config.channel_groups:
        if group not in channel_groups:
            raise ConfigurationError(
                f"Rule for recipient '{recipient}' references unknown channel group '{group}'. "
                f"Available groups: {sorted(channel_groups)}"
            )
        channels.update(channel_groups[group])

    phrases = []
    for phrase in rule_config.include:
        tokens = tuple(tokenize(phrase))
        if tokens not in phrases:
            phrases.append(tokens)

    return NotificationRule(
        recipient=recipient,
        channels=frozenset(channels),
        talkgroups=frozenset(rule_config.talkgroups),
        phrases=tuple(phrases),
        regex=_resolve_pattern(rule_config.regex, compiled_patterns, recipient),
        not_regex=_resolve_pattern(rule_config.not_regex, compiled_patterns, recipient),
    )
