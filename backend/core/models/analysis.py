"""
Analysis records. One AnalysisResult per analyze request, never mutated.
risk_level is derived from flags; it is not stored as a field.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Optional

from core.scoring import RiskLevel, score_risk


class InputType(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class FlagSource(str, Enum):
    AI = "ai"
    OFF = "off"
    FALLBACK = "fallback"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def unique_in_order(values: Iterable[str]) -> tuple[str, ...]:
    seen = set()
    out = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return tuple(out)


@dataclass(frozen=True)
class ClassificationItem:
    term: str
    harmful: bool
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"term": self.term, "harmful": self.harmful, "reason": self.reason}


@dataclass(frozen=True)
class ClassificationResult:
    """Output of the AI classifier or of its fallback path (items empty there)."""
    parsed_ingredients: tuple[str, ...]
    items: tuple[ClassificationItem, ...]
    flags: tuple[str, ...]
    source: FlagSource


@dataclass(frozen=True)
class AnalysisResult:
    input_type: InputType
    raw_input: str
    extracted_ingredients: tuple[str, ...]
    flags: tuple[str, ...]
    explanation_html: str
    source: FlagSource
    created_at: Optional[str] = None  # assigned by the store on create
    id: Optional[str] = None
    items: tuple[ClassificationItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_type", InputType(self.input_type))
        object.__setattr__(self, "source", FlagSource(self.source))
        object.__setattr__(self, "extracted_ingredients", tuple(self.extracted_ingredients))
        object.__setattr__(self, "flags", unique_in_order(self.flags))
        object.__setattr__(self, "items", tuple(self.items))

    @property
    def risk_level(self) -> RiskLevel:
        return score_risk(self.flags)

    def stored(self, scan_id: str, created_at: Optional[str] = None) -> "AnalysisResult":
        """Copy with id and creation timestamp set (timestamp kept if already present)."""
        return replace(self, id=scan_id, created_at=self.created_at or created_at or utc_now_iso())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "inputType": self.input_type.value,
            "rawInput": self.raw_input,
            "extractedIngredients": list(self.extracted_ingredients),
            "flags": list(self.flags),
            "riskLevel": self.risk_level.value,
            "explanationHtml": self.explanation_html,
            "source": self.source.value,
            "items": [i.to_dict() for i in self.items],
            "createdAt": self.created_at,
        }

    def to_summary(self) -> dict[str, Any]:
        """History listing form."""
        return {
            "id": self.id,
            "inputType": self.input_type.value,
            "flags": list(self.flags),
            "riskLevel": self.risk_level.value,
            "source": self.source.value,
            "createdAt": self.created_at,
            "extractedIngredientsCount": len(self.extracted_ingredients),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        # riskLevel in stored data is ignored; it is recomputed from flags
        return cls(
            input_type=data.get("inputType", InputType.TEXT.value),
            raw_input=data.get("rawInput", ""),
            extracted_ingredients=data.get("extractedIngredients") or [],
            flags=data.get("flags") or [],
            explanation_html=data.get("explanationHtml", ""),
            source=data.get("source", FlagSource.FALLBACK.value),
            created_at=data.get("createdAt"),
            id=data.get("id"),
            items=[
                ClassificationItem(
                    term=str(i.get("term", "")),
                    harmful=bool(i.get("harmful")),
                    reason=str(i.get("reason", "")),
                )
                for i in (data.get("items") or [])
                if isinstance(i, dict)
            ],
        )
