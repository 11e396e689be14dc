# src/flatfile_pipeline/flatfile_listener/processor.py

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .records import Record, SheetSchema
from .rules import FieldRule, compile_rules


def apply_rule(record: Record, rule: FieldRule) -> None:
    """
    Apply one rule to a record in place.

    A rule that raises is recorded as an error on its field; nothing propagates.
    """
    logger = logging.getLogger('flatfile.process')
    value = record.get(rule.field)

    try:
        result = rule.func(value)
    except Exception as e:
        logger.warning(f"Rule {rule.name} failed on field '{rule.field}' of record {record.id}: {e}")
        record.add_error(rule.field, f"Could not apply {rule.name} rule")
        return

    if rule.is_transform:
        if result != value:
            record.set(rule.field, result)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Transformed {rule.field}: '{value}' -> '{result}'")
    elif result is not None:
        record.add_error(rule.field, result)


def check_types(record: Record, schema: SheetSchema, rules: Sequence[FieldRule]) -> None:
    """
    Record an error for values whose type does not match the schema.

    Fields that already carry a validation rule are left to that rule.
    """
    validated = {r.field for r in rules if not r.is_transform}
    for key in record.type_mismatches(schema):
        if key in validated:
            continue
        spec = schema.get_field(key)
        record.add_error(key, f"Invalid {spec.display_label}: expected {spec.type}")


def process_record(record: Record, rules: Sequence[FieldRule],
                   schema: Optional[SheetSchema] = None) -> Record:
    """
    Run every rule against the record in declared order.

    Transforms change values before later validations read them. Failed
    validations accumulate as errors; processing never stops early and
    never raises.

    Args:
        record: Record to update in place
        rules: Ordered rules
        schema: Optional sheet schema for declared-type checks

    Returns:
        The same record, for chaining
    """
    for rule in rules:
        apply_rule(record, rule)

    if schema is not None:
        check_types(record, schema, rules)

    return record


def process_records(records: Iterable[Record], rules: Sequence[FieldRule],
                    schema: Optional[SheetSchema] = None) -> Dict[str, int]:
    """
    Process a batch of records.

    Returns:
        dict: counts of 'processed', 'valid' and 'invalid' records
    """
    logger = logging.getLogger('flatfile.process')

    counts = {"processed": 0, "valid": 0, "invalid": 0}
    for record in records:
        process_record(record, rules, schema)
        counts["processed"] += 1
        if record.is_valid:
            counts["valid"] += 1
        else:
            counts["invalid"] += 1
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Record {record.id} errors: {record.errors}")

    logger.info(f"📊 Processed {counts['processed']} records "
                f"({counts['valid']} valid, {counts['invalid']} invalid)")
    return counts


def build_rules(schema: SheetSchema) -> List[FieldRule]:
    """Compile the rule entries declared for a sheet, using the sheet's field labels."""
    return compile_rules(schema.rules, schema.labels)


def process_raw_records(raw_records: Iterable[Mapping[str, Any]],
                        schema: SheetSchema) -> List[Record]:
    """Parse platform records against the schema and run the sheet's rules over them."""
    rules = build_rules(schema)
    records = [Record.from_api(raw, schema) for raw in raw_records]
    process_records(records, rules, schema)
    return records
