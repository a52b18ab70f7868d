"""
Policy Configuration Helpers
============================
Environment overrides shared by the policy config dataclasses.

Usage:
    # CALLGUARD_BULKHEAD_MAX_CONCURRENT_CALLS=10
    config = BulkheadConfig.from_env()
"""

from dataclasses import Field
from typing import Any, Dict, Iterable, Mapping, Optional, Union, get_args, get_origin

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
_NONE_VALUES = {"", "none", "null"}


def _scalar_type(annotation: Any) -> Optional[type]:
    """Return the scalar type behind an annotation, or None for non-scalars."""
    if get_origin(annotation) is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) != 1:
            return None
        annotation = args[0]
    if annotation in (bool, int, float, str):
        return annotation
    return None


def _is_optional(annotation: Any) -> bool:
    return get_origin(annotation) is Union and type(None) in get_args(annotation)


def parse_value(raw: str, annotation: Any) -> Any:
    """Convert an environment string to the field's type."""
    scalar = _scalar_type(annotation)
    text = raw.strip()
    if _is_optional(annotation) and text.lower() in _NONE_VALUES:
        return None
    if scalar is bool:
        lowered = text.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"Cannot interpret {raw!r} as a boolean")
    return scalar(text)


def env_overrides(
    config_fields: Iterable[Field],
    prefix: str,
    environ: Mapping[str, str],
) -> Dict[str, Any]:
    """
    Collect constructor overrides for a config dataclass.

    Args:
        config_fields: dataclasses.fields() of the config class
        prefix: Variable prefix, e.g. "CALLGUARD_RETRY_"
        environ: Environment mapping (usually os.environ)

    Returns:
        Keyword arguments for the fields that are set in the environment.
        Fields without a scalar type (exception tuples, callables) are skipped.
    """
    overrides: Dict[str, Any] = {}
    for f in config_fields:
        if _scalar_type(f.type) is None:
            continue
        key = f"{prefix}{f.name.upper()}"
        if key not in environ:
            continue
        overrides[f.name] = parse_value(environ[key], f.type)
    return overrides

