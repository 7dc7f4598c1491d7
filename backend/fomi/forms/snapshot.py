"""The unit of save and load: form metadata plus its ordered fields."""
import json
from dataclasses import dataclass, field as dc_field
from typing import Any, Dict, List, Optional

from fomi.forms.fields import BaseField, parse_field
from fomi.forms.options import decode_options


@dataclass
class FormSnapshot:
    id: Optional[str] = None
    title: str = "Untitled form"
    description: Optional[str] = "Form description"
    estimated_time: Optional[str] = None
    fields: List[BaseField] = dc_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Request body shape for the update endpoint."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "estimatedTime": self.estimated_time,
            "fields": [f.to_dict() for f in self.fields],
        }

    def serialize(self) -> str:
        """Canonical text used to detect unchanged content between saves."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormSnapshot":
        """Accepts request bodies (options as lists) and API responses
        (options as JSON text)."""
        fields = []
        for raw in data.get("fields") or []:
            raw = dict(raw)
            if isinstance(raw.get("options"), str):
                raw["options"] = decode_options(raw["options"], raw.get("id"))
            raw.pop("order", None)
            fields.append(parse_field(raw))
        return cls(
            id=data.get("id") or data.get("formId"),
            title=data.get("title") or "Untitled form",
            description=data.get("description"),
            estimated_time=data.get("estimatedTime"),
            fields=fields,
        )
