"""
Allowance rate models.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class Rate:
    """Monthly rate paid for an allowance group and tier from a given date."""
    rate_id: str
    allowance_group: str
    tier: str
    monthly_rate: Decimal
    effective_date: date
    is_active: bool = True

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Rate":
        """Build a rate from a persisted record.

        Accepts the column names of the rates table (``group_name``,
        ``base_rate``, ``effective_date``) as well as the camelCase names the
        API returns (``allowanceGroup``, ``monthlyRate``, ``effectiveDate``).
        Raises ValueError on records that cannot be interpreted.
        """
        group = _first(record, "allowanceGroup", "allowance_group", "group_name")
        tier = _first(record, "tier")
        amount = _first(record, "monthlyRate", "monthly_rate", "baseRate", "base_rate")
        effective = _first(record, "effectiveDate", "effective_date")
        if group is None or tier is None or amount is None or effective is None:
            raise ValueError(f"Incomplete rate record: {record!r}")

        try:
            monthly_rate = Decimal(str(amount))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid monthly rate: {amount!r}") from exc

        return cls(
            rate_id=str(_first(record, "id", "rate_id") or f"{group}:{tier}:{effective}"),
            allowance_group=str(group),
            tier=str(tier),
            monthly_rate=monthly_rate,
            effective_date=_parse_date(effective),
            is_active=bool(_first(record, "isActive", "is_active", default=True)),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.rate_id,
            "allowanceGroup": self.allowance_group,
            "tier": self.tier,
            "monthlyRate": float(self.monthly_rate),
            "effectiveDate": self.effective_date.isoformat(),
            "isActive": self.is_active,
        }


def _first(record: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return default


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    # "2024-10-01T00:00:00.000Z" from the API, "2024-10-01" from the table
    return date.fromisoformat(text[:10])


class RateResponse(BaseModel):
    """Response model for rate lookups."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    allowance_group: str = Field(..., alias="allowanceGroup")
    tier: str
    monthly_rate: float = Field(..., alias="monthlyRate")
    effective_date: date = Field(..., alias="effectiveDate")
    is_active: bool = Field(True, alias="isActive")
