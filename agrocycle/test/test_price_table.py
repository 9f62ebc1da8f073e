"""
Price table lookups and stubble estimates
"""
import pytest
from agrocycle.buisness.dispatching.errors import ValidationError
from agrocycle.buisness.pricing.price_table import PriceTable
from agrocycle.data.core.crop_price import CropPrice


def test_paddy_estimate(app_ctx):
    estimate = PriceTable.estimate('paddy', 5)
    assert estimate.estimated_tonnes == 6.0
    assert estimate.estimated_price == 12000
    assert estimate.price_per_tonne == 2000
    assert '= 6.0 tonnes' in estimate.formula


def test_estimate_rounds_half_up(app_ctx):
    # 0.1 × 0.5 × 1.2 = 0.06 t; 0.06 × 1600 = 96
    estimate = PriceTable.estimate('maize', 0.1)
    assert estimate.estimated_tonnes == 0.06
    assert estimate.estimated_price == 96


def test_crop_type_is_case_insensitive(app_ctx):
    assert PriceTable.estimate('  Wheat ', 10).crop_type == 'wheat'


@pytest.mark.parametrize('area', [0, 0.05, 1000.5, -3, 'ten', float('nan')])
def test_area_out_of_range(app_ctx, area):
    with pytest.raises(ValidationError):
        PriceTable.estimate('paddy', area)


def test_unknown_crop(app_ctx):
    with pytest.raises(ValidationError) as excinfo:
        PriceTable.estimate('barley', 5)
    assert 'Invalid crop type' in str(excinfo.value)


def test_stored_price_overrides_default(app_ctx, db):
    row = CropPrice.query.filter_by(crop_type='paddy').one()
    row.price_per_tonne = 2500
    db.session.commit()
    assert PriceTable.estimate('paddy', 5).estimated_price == 15000


def test_falls_back_to_defaults_without_rows(app_ctx, db):
    CropPrice.query.delete()
    db.session.commit()
    assert PriceTable.lookup('cotton').price_per_tonne == 1400
    assert 'cotton' in PriceTable.crop_types()


def test_final_price_whole_rupee(app_ctx):
    assert PriceTable.final_price('paddy', 5.8) == 11600
    # 2.345 × 1500 = 3517.5 → 3518
    assert PriceTable.final_price('sugarcane', 2.345) == 3518
