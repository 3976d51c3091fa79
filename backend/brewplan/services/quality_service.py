# Overview: Quality checks recorded against brew batches (lab readings, sensory notes, pass/fail).

"""
Quality Log

A check belongs to one batch and can be recorded at any batch status.
result defaults to pending and may be updated later; nothing else in the
system reads result, so a failed check never moves the batch by itself.
"""

from __future__ import annotations

import logging

from ..enums import QualityCheckResult, QualityCheckType, coerce_enum
from ..errors import NotFoundError, ValidationError
from ..models import BrewBatch, QualityCheck
from ..time_utils import utcnow
from ..validation import parse_number
from .concurrency import run_in_transaction

logger = logging.getLogger(__name__)

READING_FIELDS = ("ph", "dissolved_oxygen", "turbidity", "colour_srm", "abv", "co2_volumes")
TEXT_FIELDS = ("sensory_notes", "microbiological", "notes")
MAX_TEXT_LENGTH = 2000
MAX_CHECKED_BY_LENGTH = 200


def _readings(data: dict) -> dict:
    readings = {}
    for key in READING_FIELDS:
        if key not in data:
            continue
        value = parse_number(data[key], field=key, required=False)
        if value is not None:
            if key == "ph" and value <= 0:
                raise ValidationError("ph must be positive")
            if value < 0:
                raise ValidationError(f"{key} must be >= 0")
        readings[key] = value
    return readings


def _texts(data: dict) -> dict:
    texts = {}
    for key in TEXT_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if value is not None and len(str(value)) > MAX_TEXT_LENGTH:
            raise ValidationError(f"{key} must be at most {MAX_TEXT_LENGTH} characters")
        texts[key] = value
    if "checked_by" in data:
        checked_by = data["checked_by"]
        if checked_by is not None and len(str(checked_by)) > MAX_CHECKED_BY_LENGTH:
            raise ValidationError(f"checked_by must be at most {MAX_CHECKED_BY_LENGTH} characters")
        texts["checked_by"] = checked_by
    return texts


class QualityLog:
    def __init__(self, session, *, retry_attempts: int = 3):
        self.session = session
        self.retry_attempts = retry_attempts

    def get(self, check_id: int) -> QualityCheck:
        check = self.session.get(QualityCheck, check_id)
        if check is None:
            raise NotFoundError(f"Quality check {check_id} not found")
        return check

    def list_by_batch(self, batch_id: int) -> list[QualityCheck]:
        """Newest first."""
        if self.session.get(BrewBatch, batch_id) is None:
            raise NotFoundError(f"Brew batch {batch_id} not found")
        return (
            self.session.query(QualityCheck)
            .filter_by(brew_batch_id=batch_id)
            .order_by(QualityCheck.checked_at.desc(), QualityCheck.id.desc())
            .all()
        )

    def create(self, batch_id: int, data: dict) -> QualityCheck:
        check_type = coerce_enum(QualityCheckType, data.get("check_type"), field="check_type")
        result = coerce_enum(
            QualityCheckResult, data.get("result") or QualityCheckResult.PENDING, field="result"
        )
        readings = _readings(data)
        texts = _texts(data)

        def _op():
            if self.session.get(BrewBatch, batch_id) is None:
                raise NotFoundError(f"Brew batch {batch_id} not found")
            check = QualityCheck(
                brew_batch_id=batch_id,
                check_type=check_type,
                checked_at=utcnow(),
                result=result,
                **readings,
                **texts,
            )
            self.session.add(check)
            self.session.flush()
            return check

        check = run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info("Quality check %s (%s) recorded for batch %s", check.id, check_type.value, batch_id)
        return check

    def update(self, check_id: int, data: dict) -> QualityCheck:
        """Partial update; only keys present in data are written."""
        changes = {**_readings(data), **_texts(data)}
        if "check_type" in data:
            changes["check_type"] = coerce_enum(QualityCheckType, data["check_type"], field="check_type")
        if "result" in data:
            changes["result"] = coerce_enum(QualityCheckResult, data["result"], field="result")

        def _op():
            check = self.get(check_id)
            for key, value in changes.items():
                setattr(check, key, value)
            self.session.flush()
            return check

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def remove(self, check_id: int) -> None:
        def _op():
            self.session.delete(self.get(check_id))

        run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info("Quality check %s removed", check_id)
