# src/flatfile_pipeline/flatfile_listener/rules.py

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import RuleConfigError

TRANSFORM = "transform"
VALIDATE = "validate"

# Loose on purpose: not an RFC 5322 validator
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# E.164-like: optional +, no leading zero, at most 15 digits
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


# ─────────────────────────────────────────────────────────────────────────────────
#   Pure field functions
# ─────────────────────────────────────────────────────────────────────────────────

def capitalize(value: Any) -> Any:
    """
    Title-case the first character and lower-case the rest.

    A head that title-cases to several characters ("ß" -> "Ss") keeps only
    its first one upper-cased so a second pass changes nothing. Empty
    strings and non-string values are returned unchanged so the transform
    can never fail.
    """
    if not isinstance(value, str) or not value:
        return value
    head = value[:1].title()
    return head[:1] + (head[1:] + value[1:]).lower()


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None


def is_valid_phone(value: Any) -> bool:
    return isinstance(value, str) and PHONE_PATTERN.match(value) is not None


# ─────────────────────────────────────────────────────────────────────────────────
#   Field rules
# ─────────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldRule:
    """
    A named rule bound to one field.

    For ``transform`` rules ``func`` maps a value to its corrected value.
    For ``validate`` rules ``func`` returns an error message, or None when
    the value passes.
    """
    name: str
    field: str
    kind: str
    func: Callable[[Any], Any]

    @property
    def is_transform(self) -> bool:
        return self.kind == TRANSFORM


def transform_capitalize(field: str) -> FieldRule:
    return FieldRule(name="capitalize", field=field, kind=TRANSFORM, func=capitalize)


def _validator(name: str, field: str, check: Callable[[Any], bool], message: str) -> FieldRule:
    def validate(value: Any) -> Optional[str]:
        return None if check(value) else message
    return FieldRule(name=name, field=field, kind=VALIDATE, func=validate)


def validate_string(field: str, label: Optional[str] = None) -> FieldRule:
    return _validator("string", field, is_non_empty_string, f"Invalid {label or field}")


def validate_email(field: str) -> FieldRule:
    return _validator("email", field, is_valid_email, "Invalid email address")


def validate_phone(field: str) -> FieldRule:
    return _validator("phone", field, is_valid_phone, "Invalid phone number")


RULE_BUILDERS: Dict[str, Callable[..., FieldRule]] = {
    "capitalize": lambda field, label=None: transform_capitalize(field),
    "string": validate_string,
    "email": lambda field, label=None: validate_email(field),
    "phone": lambda field, label=None: validate_phone(field),
}


def compile_rule(spec: Mapping[str, Any], labels: Optional[Mapping[str, str]] = None) -> FieldRule:
    """
    Compile one blueprint rule entry (``{"rule": ..., "field": ...}``) into a FieldRule.

    Raises:
        RuleConfigError: unknown rule name or missing field
    """
    name = str(spec.get("rule", "")).strip()
    field = spec.get("field")
    if not field:
        raise RuleConfigError(f"Rule {name!r} has no field")

    builder = RULE_BUILDERS.get(name)
    if builder is None:
        raise RuleConfigError(f"Unknown rule {name!r} for field {field!r}")

    label = spec.get("label") or (labels or {}).get(field)
    return builder(field, label)


def compile_rules(specs: Iterable[Mapping[str, Any]],
                  labels: Optional[Mapping[str, str]] = None) -> List[FieldRule]:
    """Compile rule entries in declared order."""
    logger = logging.getLogger('flatfile.rules')
    rules = [compile_rule(spec, labels) for spec in specs]
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Compiled rules: {[f'{r.name}({r.field})' for r in rules]}")
    return rules
