"""
Persistence layer: SQLAlchemy models only.

Business rules live in agrocycle.buisness; models here carry columns,
relationships and store-level constraints (unique and partial indexes).
"""
