# src/flatfile_pipeline/flatfile_listener/records.py

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Python types accepted for each blueprint field type
FIELD_TYPES: Dict[str, Tuple[type, ...]] = {
    "string": (str,),
    "number": (int, float),
    "boolean": (bool,),
}

# Message source tag written back to the platform
MESSAGE_SOURCE = "custom-logic"


@dataclass(frozen=True)
class FieldSpec:
    key: str
    type: str = "string"
    label: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.label or self.key

    def accepts(self, value: Any) -> bool:
        """True when value is absent or matches the declared type."""
        if value is None:
            return True
        expected = FIELD_TYPES.get(self.type)
        if expected is None:
            return True
        if self.type == "number" and isinstance(value, bool):
            return False
        return isinstance(value, expected)


@dataclass(frozen=True)
class SheetSchema:
    """One sheet from the blueprint: its ordered fields and declared rule entries."""
    name: str
    slug: str
    fields: Tuple[FieldSpec, ...]
    rules: Tuple[Mapping[str, Any], ...] = ()

    @property
    def keys(self) -> List[str]:
        return [f.key for f in self.fields]

    @property
    def labels(self) -> Dict[str, str]:
        return {f.key: f.display_label for f in self.fields}

    def get_field(self, key: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.key == key:
                return spec
        return None

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SheetSchema":
        fields = tuple(
            FieldSpec(key=f["key"], type=f.get("type", "string"), label=f.get("label"))
            for f in config.get("fields", [])
        )
        return cls(
            name=config.get("name", config["slug"]),
            slug=config["slug"],
            fields=fields,
            rules=tuple(config.get("rules", [])),
        )


@dataclass
class Record:
    """
    One row of sheet data plus the error messages accumulated against it.

    Validity is derived from ``errors``; there is no stored flag.
    """
    id: Optional[str]
    values: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, List[str]] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        return self.values.get(key)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def add_error(self, key: str, message: str) -> None:
        self.errors.setdefault(key, []).append(message)

    @property
    def is_valid(self) -> bool:
        return not any(self.errors.values())

    @property
    def error_count(self) -> int:
        return sum(len(messages) for messages in self.errors.values())

    def type_mismatches(self, schema: SheetSchema) -> List[str]:
        """Keys whose current value does not match the schema's declared type."""
        return [spec.key for spec in schema.fields if not spec.accepts(self.values.get(spec.key))]

    @classmethod
    def from_api(cls, raw: Mapping[str, Any], schema: Optional[SheetSchema] = None) -> "Record":
        """
        Build a Record from the platform's record shape::

            {"id": "us_rc_1", "values": {"email": {"value": "a@b.co", "messages": []}}}

        When a schema is given, values are ordered by the schema and absent
        fields are present with a None value.
        """
        raw_values = raw.get("values") or {}
        keys = schema.keys if schema else list(raw_values.keys())

        values: Dict[str, Any] = {}
        for key in keys:
            cell = raw_values.get(key)
            values[key] = cell.get("value") if isinstance(cell, Mapping) else cell

        return cls(id=raw.get("id"), values=values)

    def differs_from(self, raw: Mapping[str, Any]) -> bool:
        """
        True when writing this record back would change the fetched platform
        record: some value differs, or some cell's error messages differ.
        """
        raw_values = raw.get("values") or {}
        for key, cell in self.to_api()["values"].items():
            old = raw_values.get(key)
            if isinstance(old, Mapping):
                old_value = old.get("value")
                old_messages = [m.get("message") for m in old.get("messages") or [] if isinstance(m, Mapping)]
            else:
                old_value, old_messages = old, []
            if old_value != cell["value"] or old_messages != [m["message"] for m in cell["messages"]]:
                return True
        return False

    def to_api(self) -> Dict[str, Any]:
        """Render back to the platform's record shape, errors as cell messages."""
        rendered = {}
        keys = list(self.values) + [key for key in self.errors if key not in self.values]
        for key in keys:
            messages = [
                {"type": "error", "message": message, "source": MESSAGE_SOURCE}
                for message in self.errors.get(key, [])
            ]
            rendered[key] = {"value": self.values.get(key), "messages": messages}
        return {"id": self.id, "values": rendered}
