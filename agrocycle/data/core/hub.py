from agrocycle.data.core.user_created_base import UserCreatedBase
from agrocycle import db


class Hub(UserCreatedBase):
    """Regional collection hub that owns vehicles and holds stubble inventory"""
    __tablename__ = 'hubs'

    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    capacity_tonnes = db.Column(db.Float, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    vehicles = db.relationship('Vehicle', back_populates='hub', lazy='dynamic')

    def __repr__(self):
        return f'<Hub {self.code}: {self.name}>'
