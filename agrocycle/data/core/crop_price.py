from agrocycle.data.core.user_created_base import UserCreatedBase
from agrocycle import db


# (crop_type, yield_factor, residue_ratio, price_per_tonne)
DEFAULT_CROP_PRICES = (
    ('paddy', 0.8, 1.5, 2000),
    ('wheat', 0.6, 1.3, 1800),
    ('sugarcane', 1.2, 0.8, 1500),
    ('maize', 0.5, 1.2, 1600),
    ('cotton', 0.4, 2.0, 1400),
    ('other', 0.5, 1.0, 1500),
)


class CropPrice(UserCreatedBase):
    """
    Price table row for one crop type.

    yield_factor is tonnes of grain per acre and residue_ratio is tonnes of
    stubble per tonne of grain; price_per_tonne is what the farmer is paid
    for the stubble.
    """
    __tablename__ = 'crop_prices'

    crop_type = db.Column(db.String(30), unique=True, nullable=False)
    price_per_tonne = db.Column(db.Float, nullable=False)
    yield_factor = db.Column(db.Float, nullable=False)
    residue_ratio = db.Column(db.Float, nullable=False)

    def __repr__(self):
        return f'<CropPrice {self.crop_type}: {self.price_per_tonne}/t>'
