"""
PriceTable - crop type to yield, residue and stubble price

Rows come from the crop_prices table; crops with no row fall back to the
built-in defaults so estimates keep working on a freshly built database.
"""

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from agrocycle.buisness.dispatching.errors import ValidationError
from agrocycle.data.core.crop_price import CropPrice, DEFAULT_CROP_PRICES

MIN_AREA_ACRES = Decimal('0.1')
MAX_AREA_ACRES = Decimal('1000')

TONNES = Decimal('0.01')
RUPEES = Decimal('1')


def to_decimal(value) -> Decimal:
    # via str so 0.8 stays 0.8 rather than its binary expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class CropRate:
    crop_type: str
    yield_factor: float
    residue_ratio: float
    price_per_tonne: float


@dataclass(frozen=True)
class StubbleEstimate:
    crop_type: str
    area_in_acres: float
    estimated_tonnes: float
    estimated_price: float
    price_per_tonne: float
    yield_factor: float
    residue_ratio: float

    @property
    def formula(self):
        return (
            f"{self.area_in_acres} acres × {self.yield_factor} × {self.residue_ratio} "
            f"= {self.estimated_tonnes} tonnes"
        )

    def to_dict(self):
        result = asdict(self)
        result['formula'] = self.formula
        return result


class PriceTable:

    @staticmethod
    def crop_types():
        stored = {row.crop_type for row in CropPrice.query.all()}
        return sorted(stored | {crop for crop, *_ in DEFAULT_CROP_PRICES})

    @staticmethod
    def lookup(crop_type: str) -> CropRate:
        """
        Raises:
            ValidationError: unknown crop type
        """
        crop_type = (crop_type or '').strip().lower()
        row = CropPrice.query.filter_by(crop_type=crop_type).first()
        if row is not None:
            return CropRate(row.crop_type, row.yield_factor, row.residue_ratio, row.price_per_tonne)

        for default_crop, yield_factor, residue_ratio, price in DEFAULT_CROP_PRICES:
            if default_crop == crop_type:
                return CropRate(default_crop, yield_factor, residue_ratio, price)

        raise ValidationError(f"Invalid crop type: {crop_type or '(empty)'}")

    @classmethod
    def all_rates(cls):
        return [cls.lookup(crop) for crop in cls.crop_types()]

    @classmethod
    def estimate(cls, crop_type: str, area_in_acres) -> StubbleEstimate:
        """
        tonnes = area × yield factor × residue ratio, to 2 d.p.
        price = tonnes × price per tonne, to the whole rupee

        Raises:
            ValidationError: unknown crop or area outside 0.1–1000 acres
        """
        try:
            area = to_decimal(area_in_acres)
        except (ArithmeticError, ValueError, TypeError):
            raise ValidationError("area_in_acres must be a number")
        if not area.is_finite() or not MIN_AREA_ACRES <= area <= MAX_AREA_ACRES:
            raise ValidationError("Area must be between 0.1 and 1000 acres")

        rate = cls.lookup(crop_type)
        tonnes = (area * to_decimal(rate.yield_factor) * to_decimal(rate.residue_ratio)).quantize(
            TONNES, rounding=ROUND_HALF_UP
        )
        price = (tonnes * to_decimal(rate.price_per_tonne)).quantize(RUPEES, rounding=ROUND_HALF_UP)

        return StubbleEstimate(
            crop_type=rate.crop_type,
            area_in_acres=float(area),
            estimated_tonnes=float(tonnes),
            estimated_price=float(price),
            price_per_tonne=rate.price_per_tonne,
            yield_factor=rate.yield_factor,
            residue_ratio=rate.residue_ratio,
        )

    @classmethod
    def final_price(cls, crop_type: str, actual_tonnes) -> float:
        """Price for the weighed quantity, to the whole rupee"""
        rate = cls.lookup(crop_type)
        price = to_decimal(actual_tonnes) * to_decimal(rate.price_per_tonne)
        return float(price.quantize(RUPEES, rounding=ROUND_HALF_UP))
