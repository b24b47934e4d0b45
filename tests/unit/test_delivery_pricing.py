import pytest
from storefront.delivery import geo
from storefront.delivery import pricing

LUSAKA = (-15.4167, 28.2833)
NDOLA = (-12.9587, 28.6366)

def test_haversine_one_degree_on_equator():
    d = geo.haversine_distance(0, 0, 0, 1)
    assert d == pytest.approx(111.195, abs=0.001)

def test_haversine_symmetric_and_zero_on_same_point():
    ab = geo.haversine_distance(*LUSAKA, *NDOLA)
    ba = geo.haversine_distance(*NDOLA, *LUSAKA)
    assert ab == pytest.approx(ba)
    assert geo.haversine_distance(*LUSAKA, *LUSAKA) == 0

@pytest.mark.parametrize("raw", ["-15.4167,28.2833", " -15.4167 , 28.2833 "])
def test_parse_location_ok(raw):
    assert geo.parse_location(raw) == LUSAKA

@pytest.mark.parametrize("raw", ["", "abc", "1,2,3", "nan,28", "91,0", "0,181", "Cairo Road, Lusaka"])
def test_parse_location_invalid(raw):
    with pytest.raises(ValueError):
        geo.parse_location(raw)

def test_cost_zero_distance_normal_is_base_fee():
    # Client au point de retrait de la boutique
    assert pricing.calculate_delivery_cost(0, pricing.NORMAL) == 15.00

def test_cost_rates_per_tier():
    assert pricing.calculate_delivery_cost(10, pricing.ECONOMY) == 35.0
    assert pricing.calculate_delivery_cost(10, pricing.NORMAL) == 50.0
    assert pricing.calculate_delivery_cost(10, pricing.EXPRESS) == 65.0

def test_pickup_always_free_and_unknown_tier_rejected():
    for d in (0, 3.7, 1000):
        assert pricing.calculate_delivery_cost(d, pricing.PICKUP) == 0.0
    with pytest.raises(ValueError):
        pricing.calculate_delivery_cost(5, "drone")

def test_rounding_half_up_to_nearest_half():
    # 15 + 0.125*2 = 15.25 -> 15.5
    assert pricing.calculate_delivery_cost(0.125, pricing.ECONOMY) == 15.5
    # 15 + 0.1*2 = 15.2 -> 15.0
    assert pricing.calculate_delivery_cost(0.1, pricing.ECONOMY) == 15.0
    assert pricing.round_to_half(15.75) == 16.0

def test_cost_is_multiple_of_half_and_non_decreasing():
    distances = [i * 0.37 for i in range(200)]
    for tier in (pricing.ECONOMY, pricing.NORMAL, pricing.EXPRESS):
        costs = [pricing.calculate_delivery_cost(d, tier) for d in distances]
        assert all((c * 2) == int(c * 2) for c in costs)
        assert costs == sorted(costs)

def test_costs_by_method_has_every_tier():
    costs = pricing.costs_by_method(0)
    assert costs == {"pickup": 0.0, "economy": 15.0, "normal": 15.0, "express": 15.0}
