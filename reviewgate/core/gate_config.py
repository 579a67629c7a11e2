"""Gate configuration for reviewgate.

Handles loading and validation of the YAML file that names the workflow
statuses and the provider fields the gate reads and annotates. Historical
deployments differ only in which annotation fields exist, so the file may
declare several named variants and select one of them.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_REQUIRED_STATUS = "Ready for Review"
DEFAULT_TARGET_STATUS = "Approved"
DEFAULT_APPROVER_FIELD = "customfield_10003"
DEFAULT_LEDGER_KEY = "approvalVotes"

DATE_FORMATS = ("datetime", "date")

# Built-in annotation variants
DEFAULT_VARIANTS = {
    "annotated": {
        "approval_date_field": "customfield_15694",
        "approval_given_by_field": "customfield_15826",
        "approval_date_format": "datetime",
    },
    "votes_only": {},
}


@dataclass
class AnnotationFields:
    """Provider fields written as a side effect of an approval."""

    approval_date_field: Optional[str] = None
    approval_given_by_field: Optional[str] = None
    approval_date_format: str = "datetime"

    @property
    def field_ids(self) -> list[str]:
        """Configured field ids, in write order."""
        return [f for f in (self.approval_date_field, self.approval_given_by_field) if f]

    @property
    def is_empty(self) -> bool:
        return not self.field_ids


@dataclass
class GateConfig:
    """Top-level configuration for the approval gate."""

    required_status: str = DEFAULT_REQUIRED_STATUS
    target_status: str = DEFAULT_TARGET_STATUS
    approver_field: str = DEFAULT_APPROVER_FIELD
    ledger_key: str = DEFAULT_LEDGER_KEY
    variant: str = "annotated"
    annotations: AnnotationFields = field(
        default_factory=lambda: parse_annotation_fields(DEFAULT_VARIANTS["annotated"])
    )

    @property
    def read_fields(self) -> list[str]:
        """Provider fields the gate needs on every item read."""
        return ["status", self.approver_field, *self.annotations.field_ids]


def parse_annotation_fields(fields_dict: Dict[str, Any]) -> AnnotationFields:
    """Parse an annotation field set.

    Args:
        fields_dict: Annotation configuration dictionary

    Returns:
        AnnotationFields instance

    Raises:
        ValueError: If the date format is not supported
    """
    date_format = fields_dict.get("approval_date_format", "datetime")
    if date_format not in DATE_FORMATS:
        raise ValueError(
            f"Invalid approval_date_format: {date_format}. "
            f"Must be one of: {', '.join(DATE_FORMATS)}"
        )

    return AnnotationFields(
        approval_date_field=fields_dict.get("approval_date_field") or None,
        approval_given_by_field=fields_dict.get("approval_given_by_field") or None,
        approval_date_format=date_format,
    )


def parse_gate_config(config_dict: Dict[str, Any]) -> GateConfig:
    """Parse the full gate configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        GateConfig instance

    Raises:
        ValueError: If the selected variant is not declared
    """
    variants = dict(DEFAULT_VARIANTS)
    variants.update(config_dict.get("variants") or {})

    variant = config_dict.get("variant", "annotated")
    if variant not in variants:
        raise ValueError(
            f"Unknown gate variant: {variant}. "
            f"Declared variants: {', '.join(sorted(variants))}"
        )

    return GateConfig(
        required_status=config_dict.get("required_status", DEFAULT_REQUIRED_STATUS),
        target_status=config_dict.get("target_status", DEFAULT_TARGET_STATUS),
        approver_field=config_dict.get("approver_field", DEFAULT_APPROVER_FIELD),
        ledger_key=config_dict.get("ledger_key", DEFAULT_LEDGER_KEY),
        variant=variant,
        annotations=parse_annotation_fields(variants[variant] or {}),
    )


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_gate_config(config_path: Optional[str] = None) -> GateConfig:
    """Load and parse the gate configuration.

    Without a path the built-in defaults are returned.
    """
    if not config_path:
        return GateConfig()
    return parse_gate_config(load_config(config_path))
