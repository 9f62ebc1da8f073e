"""
Compare-and-set writes.

A guarded update applies `values` to one row only while `conditions` still
hold in the database, and reports whether it did. Objects already loaded in
the session are refreshed from the statement.
"""

from sqlalchemy import update
from agrocycle import db


def guarded_update(model, row_id, conditions, values) -> bool:
    result = db.session.execute(
        update(model)
        .where(model.id == row_id, *conditions)
        .values(**values)
        .execution_options(synchronize_session='fetch')
    )
    return result.rowcount == 1
