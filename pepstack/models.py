from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pepstack.names import normalize_name, parse_text_list

# Type aliases
InteractionType = Literal["synergy", "neutral", "caution", "avoid"]
Severity = Literal["low", "medium", "high"]
WorstSeverity = Literal["avoid", "caution"]

# Lower sorts first in stack results.
TYPE_PRIORITY: Dict[str, int] = {"avoid": 0, "caution": 1, "neutral": 2, "synergy": 3}


class InteractionRecord(BaseModel):
    """A documented interaction between two compounds.

    Rows coming from the data store are schemaless, so every field is coerced
    here before the matcher ever sees it.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Optional[str] = None
    compound_a: str = Field(..., min_length=1)
    compound_b: str = Field(..., min_length=1)
    interaction_type: InteractionType
    severity: Optional[Severity] = None
    description: str = ""
    mechanism: Optional[str] = None
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Optional[str]:
        if value is None or str(value).strip() == "":
            return None
        return str(value).strip()

    @field_validator("compound_a", "compound_b", mode="before")
    @classmethod
    def _strip_names(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("interaction_type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("severity", mode="before")
    @classmethod
    def _lower_severity(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("mechanism", mode="before")
    @classmethod
    def _blank_mechanism(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("recommendations", mode="before")
    @classmethod
    def _parse_recommendations(cls, value: Any) -> List[str]:
        return parse_text_list(value)

    @model_validator(mode="after")
    def _names_must_canonicalise(self) -> "InteractionRecord":
        for field in ("compound_a", "compound_b"):
            if not normalize_name(getattr(self, field)):
                raise ValueError(f"{field} has no matchable characters")
        return self


class StackInteraction(InteractionRecord):
    """An interaction found inside a stack, tagged with the input pair."""

    pair: Tuple[str, str]

    @classmethod
    def from_record(cls, record: InteractionRecord, first: str, second: str) -> "StackInteraction":
        return cls.model_validate({**record.model_dump(), "pair": (first, second)})


class StackSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    avoid: int = 0
    caution: int = 0
    synergy: int = 0
    neutral: int = 0
    has_warnings: bool = Field(False, alias="hasWarnings")
    worst_severity: Optional[WorstSeverity] = Field(None, alias="worstSeverity")


class StackReport(BaseModel):
    summary: StackSummary
    interactions: List[StackInteraction] = Field(default_factory=list)


class StackPreset(BaseModel):
    name: str
    compounds: List[str]
