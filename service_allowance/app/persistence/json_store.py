"""
JSON seed files for rules and rates.

Rules and rates live in the application database; this service is handed
exports of those tables as JSON arrays of records.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from shared.logging import get_logger
from shared.errors import ServiceError
from ..rates.models import Rate
from ..rules.models import Rule


logger = get_logger("allowance.persistence.json")


def load_records(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Read a JSON array of objects from ``path``."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Failed to read seed file", path=str(path), error=str(e))
        raise ServiceError("Failed to read seed file", {"path": str(path), "error": str(e)}) from e

    if not isinstance(data, list):
        raise ServiceError("Seed file must contain a JSON array", {"path": str(path)})

    return [record for record in data if isinstance(record, dict)]


def load_rules(path: Optional[Union[str, Path]]) -> List[Rule]:
    """Load rule records; no path means no rules."""
    if not path:
        return []
    rules = [Rule.from_record(record) for record in load_records(path)]
    logger.info("Rules loaded from file", path=str(path), count=len(rules))
    return rules


def load_rates(path: Optional[Union[str, Path]]) -> List[Rate]:
    """Load rate records, skipping records that cannot be interpreted."""
    if not path:
        return []
    rates = []
    for record in load_records(path):
        try:
            rates.append(Rate.from_record(record))
        except ValueError as e:
            logger.warning("Skipping invalid rate record", error=str(e))
    logger.info("Rates loaded from file", path=str(path), count=len(rates))
    return rates
