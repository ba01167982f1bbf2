"""
Reference records for the four regulatory corpora.

Records are immutable snapshots of rows in the reference database:
- AllergenDefinition: the nine FALCPA / FASTER Act major food allergens
- GRASIngredientRecord: FDA GRAS substances (21 CFR 170.3)
- NDINotificationRecord: FDA New Dietary Ingredient notifications
- OldDietaryIngredientRecord: dietary ingredients marketed before October 15, 1994
"""
from datetime import date
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict, field_validator


def _as_str_tuple(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    return tuple(str(v) for v in value if v is not None and str(v).strip())


class ReferenceRecord(BaseModel):
    model_config = ConfigDict(frozen=True)


class AllergenDefinition(ReferenceRecord):
    """One major food allergen and the names it hides behind."""
    id: Optional[str] = None
    name: str
    category: str = ""
    common_name: Optional[str] = None
    derivatives: Tuple[str, ...] = ()
    scientific_names: Tuple[str, ...] = ()
    cross_reactive: Tuple[str, ...] = ()
    active: bool = True
    regulation_citation: str = "FALCPA Section 403(w), FASTER Act"
    notes: Optional[str] = None

    @field_validator("derivatives", "scientific_names", "cross_reactive", mode="before")
    @classmethod
    def coerce_name_lists(cls, v):
        return _as_str_tuple(v)

    @property
    def key(self) -> str:
        return self.id or self.name.lower()

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "AllergenDefinition":
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            name=row["allergen_name"],
            category=row.get("allergen_category") or "",
            common_name=row.get("common_name"),
            derivatives=row.get("derivatives"),
            scientific_names=row.get("scientific_names"),
            cross_reactive=row.get("cross_reactive_allergens"),
            active=row.get("is_active", True) is not False,
            regulation_citation=row.get("regulation_citation") or "FALCPA Section 403(w), FASTER Act",
            notes=row.get("notes"),
        )


class GRASIngredientRecord(ReferenceRecord):
    id: Optional[str] = None
    name: str
    synonyms: Tuple[str, ...] = ()
    gras_status: str = "affirmed"  # affirmed | notice | scogs | pending
    notice_number: Optional[str] = None
    cas_number: Optional[str] = None
    category: Optional[str] = None
    active: bool = True

    @field_validator("synonyms", mode="before")
    @classmethod
    def coerce_synonyms(cls, v):
        return _as_str_tuple(v)

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "GRASIngredientRecord":
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            name=row["ingredient_name"],
            synonyms=row.get("synonyms"),
            gras_status=row.get("gras_status") or "affirmed",
            notice_number=row.get("gras_notice_number"),
            cas_number=row.get("cas_number"),
            category=row.get("category"),
            active=row.get("is_active", True) is not False,
        )


class NDINotificationRecord(ReferenceRecord):
    """An FDA NDI notification. ``notification_number`` is the stable identifier."""
    notification_number: int
    report_number: Optional[str] = None
    ingredient_name: str
    firm: Optional[str] = None
    submission_date: Optional[date] = None
    fda_response_date: Optional[date] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "NDINotificationRecord":
        return cls(
            notification_number=row["notification_number"],
            report_number=row.get("report_number"),
            ingredient_name=row["ingredient_name"],
            firm=row.get("firm"),
            submission_date=row.get("submission_date"),
            fda_response_date=row.get("fda_response_date"),
        )


class OldDietaryIngredientRecord(ReferenceRecord):
    """A grandfathered (pre-DSHEA) dietary ingredient."""
    id: Optional[str] = None
    ingredient_name: str
    synonyms: Tuple[str, ...] = ()
    source_organization: Optional[str] = None
    active: bool = True

    @field_validator("synonyms", mode="before")
    @classmethod
    def coerce_synonyms(cls, v):
        return _as_str_tuple(v)

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "OldDietaryIngredientRecord":
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            ingredient_name=row["ingredient_name"],
            synonyms=row.get("synonyms"),
            source_organization=row.get("source"),
            active=row.get("is_active", True) is not False,
        )
