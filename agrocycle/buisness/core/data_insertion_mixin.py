"""
Generic data insertion mixin for SQLAlchemy models
Provides from_dict and to_dict methods used by seeding and by the JSON API.
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from sqlalchemy import inspect
from agrocycle.logger import get_logger

logger = get_logger("agrocycle.domain.core.data_insertion")

AUDIT_FIELDS = ('created_at', 'updated_at', 'created_by_id', 'updated_by_id')


def _serialize(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    return value


class DataInsertionMixin:
    """
    Mixin that provides generic data insertion capabilities for SQLAlchemy models

    This mixin adds:
    - from_dict(): Create model instance from dictionary
    - to_dict(): Convert model instance to dictionary
    - find_or_create_from_dict(): Idempotent insert keyed on unique columns
    """

    @classmethod
    def from_dict(cls, data_dict, user_id=None, skip_fields=None):
        """
        Create a model instance from a dictionary

        Args:
            data_dict (dict): Dictionary containing model data
            user_id (int, optional): Actor ID for audit fields
            skip_fields (list, optional): Fields to skip during creation

        Returns:
            Model instance (not added to the session)
        """
        if skip_fields is None:
            skip_fields = []

        columns = {c.key for c in inspect(cls).columns}

        filtered_data = {}
        for key, value in data_dict.items():
            if key not in columns or key in skip_fields:
                continue
            if key in ('created_at', 'updated_at') and value is None:
                continue
            filtered_data[key] = value

        instance = cls(**filtered_data)

        if user_id is not None:
            if hasattr(instance, 'created_by_id') and not instance.created_by_id:
                instance.created_by_id = user_id
            if hasattr(instance, 'updated_by_id'):
                instance.updated_by_id = user_id

        return instance

    def to_dict(self, include_audit_fields=True, exclude=None):
        """
        Convert model instance to a JSON-friendly dictionary

        Args:
            include_audit_fields (bool): Whether to include audit fields
            exclude (iterable, optional): Column keys to leave out

        Returns:
            dict: Dictionary representation of the model
        """
        exclude = set(exclude or ())
        result = {}

        for column in inspect(self.__class__).columns:
            if column.key in exclude:
                continue
            if not include_audit_fields and column.key in AUDIT_FIELDS:
                continue
            result[column.key] = _serialize(getattr(self, column.key))

        return result

    @classmethod
    def find_or_create_from_dict(cls, data_dict, lookup_fields, user_id=None):
        """
        Find existing instance or create (and add) a new one

        Args:
            data_dict (dict): Dictionary containing model data
            lookup_fields (list): Fields used for the lookup
            user_id (int, optional): Actor ID for audit fields

        Returns:
            tuple: (instance, created) where created is boolean
        """
        from agrocycle import db

        lookup_data = {field: data_dict[field] for field in lookup_fields if field in data_dict}
        existing = cls.query.filter_by(**lookup_data).first() if lookup_data else None
        if existing:
            logger.debug(f"Found existing {cls.__name__}: {existing}")
            return existing, False

        instance = cls.from_dict(data_dict, user_id=user_id)
        db.session.add(instance)
        logger.info(f"Created {cls.__name__}: {instance}")
        return instance, True
