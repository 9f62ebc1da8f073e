"""
Completion Report Policy

Validates the operator's completion report. Staged fields are checked as
they arrive; the required quantity and duration are checked when the
operator declares work_complete.
"""

import math
from typing import Any, Dict, Optional
from agrocycle.buisness.dispatching.errors import InvalidReport


PHOTO_CATEGORIES = ('before', 'after', 'fieldCondition')

NUMERIC_FIELDS = ('actual_quantity_tonnes', 'time_required_minutes', 'moisture_content')
REPORT_FIELDS = NUMERIC_FIELDS + ('bale_count', 'operator_remarks', 'photos', 'farmer_signature')
REQUIRED_FIELDS = ('actual_quantity_tonnes', 'time_required_minutes')


class CompletionReportPolicy:

    @classmethod
    def clean(cls, report: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Validate and coerce the fields present in a report.

        Args:
            report: Raw report mapping (may be None)

        Returns:
            dict: Cleaned fields, only those that were supplied

        Raises:
            InvalidReport: unknown field or out-of-range value
        """
        if not report:
            return {}
        if not isinstance(report, dict):
            raise InvalidReport("Completion report must be an object")

        unknown = set(report) - set(REPORT_FIELDS)
        if unknown:
            raise InvalidReport(f"Unknown report fields: {', '.join(sorted(unknown))}")

        cleaned = {}
        for field in NUMERIC_FIELDS:
            if report.get(field) is not None:
                cleaned[field] = cls._number(field, report[field])

        for field in REQUIRED_FIELDS:
            if field in cleaned and cleaned[field] <= 0:
                raise InvalidReport(f"{field} must be greater than 0")

        if 'moisture_content' in cleaned and not 0 <= cleaned['moisture_content'] <= 100:
            raise InvalidReport("moisture_content must be a percentage between 0 and 100")

        if report.get('bale_count') is not None:
            bale_count = report['bale_count']
            if isinstance(bale_count, bool) or not isinstance(bale_count, int) or bale_count < 0:
                raise InvalidReport("bale_count must be a non-negative integer")
            cleaned['bale_count'] = bale_count

        for field in ('operator_remarks', 'farmer_signature'):
            if report.get(field) is not None:
                if not isinstance(report[field], str):
                    raise InvalidReport(f"{field} must be a string")
                cleaned[field] = report[field]

        if report.get('photos') is not None:
            cleaned['photos'] = cls._photos(report['photos'])

        return cleaned

    @classmethod
    def check_complete(cls, assignment, cleaned: Optional[Dict[str, Any]] = None) -> None:
        """
        Check the staged report plus the incoming fields carry the required values.

        Raises:
            InvalidReport: a required field is missing
        """
        cleaned = cleaned or {}
        missing = [f for f in REQUIRED_FIELDS if not cleaned.get(f, getattr(assignment, f))]
        if missing:
            raise InvalidReport(
                f"work_complete requires {', '.join(missing)} greater than 0"
            )

    @staticmethod
    def merge_photos(existing: Optional[Dict[str, list]], new: Dict[str, list]) -> Dict[str, list]:
        """Append new photo references to the existing categories"""
        merged = {category: list((existing or {}).get(category, [])) for category in PHOTO_CATEGORIES}
        for category, refs in new.items():
            merged[category].extend(refs)
        return merged

    @staticmethod
    def _number(field, value) -> float:
        if isinstance(value, bool):
            raise InvalidReport(f"{field} must be a number")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidReport(f"{field} must be a number")
        if not math.isfinite(number):
            raise InvalidReport(f"{field} must be a finite number")
        return number

    @staticmethod
    def _photos(photos) -> Dict[str, list]:
        if not isinstance(photos, dict):
            raise InvalidReport("photos must be an object of before/after/fieldCondition lists")
        unknown = set(photos) - set(PHOTO_CATEGORIES)
        if unknown:
            raise InvalidReport(f"Unknown photo categories: {', '.join(sorted(unknown))}")
        cleaned = {}
        for category, refs in photos.items():
            if not isinstance(refs, list) or not all(isinstance(r, str) for r in refs):
                raise InvalidReport(f"photos.{category} must be a list of references")
            cleaned[category] = refs
        return cleaned
