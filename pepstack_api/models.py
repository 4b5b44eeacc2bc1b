from typing import Any, Dict, List

from pydantic import BaseModel, field_validator, model_validator


class StackRequest(BaseModel):
    """Request payload for stack checks with input validation and alias support."""

    compounds: List[str]

    @model_validator(mode="before")
    @classmethod
    def _alias_items(cls, values: Any) -> Any:
        if isinstance(values, dict) and "compounds" not in values and "items" in values:
            values = {**values, "compounds": values["items"]}
        return values

    @field_validator("compounds", mode="before")
    @classmethod
    def _validate_compounds(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            raise ValueError("compounds must be provided as a list of strings")
        # Blank entries are dropped; fewer than two names yields an empty report.
        return [str(item).strip() for item in value if item is not None and str(item).strip()]


class InteractionPair(BaseModel):
    a: str
    b: str


class CacheClearResponse(BaseModel):
    status: str = "cleared"
    cleared: Dict[str, bool]
