import pytest
from storefront.coupons import service as svc
from storefront.coupons.models import Coupon

def _coupon(store_id="store-x", code="SAVE10", kind="percentage", value=10, min_spend=None):
    return Coupon(id=f"c-{store_id}-{code}", code=code, store_id=store_id,
                  discount_type=kind, discount_value=value, min_spend=min_spend)

def _row(store_id, code="SAVE10", **extra):
    row = {"id": f"c-{store_id}", "code": code, "store_id": store_id,
           "discount_type": "percentage", "discount_value": 10, "min_spend": None}
    row.update(extra)
    return row

def test_resolve_returns_coupon_of_owning_store(fake_db):
    fake_db.coupons.append(_row("store-x"))
    coupon = svc.resolve_coupon(None, "SAVE10", ["store-x", "store-y"])
    assert coupon.store_id == "store-x"
    assert coupon.discount_value == 10

def test_resolve_scans_in_order_and_skips_duplicates(fake_db):
    fake_db.coupons.append(_row("store-y"))
    coupon = svc.resolve_coupon(None, "SAVE10", ["store-x", "store-x", "", "store-y"])
    assert coupon.store_id == "store-y"
    assert fake_db.calls.count("verify_coupon") == 2

def test_unknown_code_generic_message(fake_db):
    fake_db.coupons.append(_row("store-z"))
    with pytest.raises(svc.CouponNotApplicable) as exc:
        svc.resolve_coupon(None, "SAVE10", ["store-x", "store-y"])
    assert str(exc.value) == svc.COUPON_NOT_APPLICABLE_MESSAGE

def test_blank_code_never_hits_database(fake_db):
    with pytest.raises(svc.CouponNotApplicable):
        svc.resolve_coupon(None, "   ", ["store-x"])
    assert fake_db.calls == []

def test_apply_replaces_coupon_of_same_store():
    first = _coupon(code="SAVE10")
    second = _coupon(code="FLAT5", kind="fixed_amount", value=5)
    other = _coupon(store_id="store-y", code="SAVE10")
    applied = svc.apply_coupon([], first)
    applied = svc.apply_coupon(applied, other)
    applied = svc.apply_coupon(applied, second)
    assert [c.code for c in applied if c.store_id == "store-x"] == ["FLAT5"]
    assert len(applied) == 2

def test_apply_same_code_twice_rejected():
    applied = svc.apply_coupon([], _coupon())
    with pytest.raises(svc.CouponAlreadyApplied):
        svc.apply_coupon(applied, _coupon(code="save10"))

def test_coupon_for_store_last_wins():
    a = _coupon(code="A")
    b = _coupon(code="B")
    assert svc.coupon_for_store([a, b], "store-x").code == "B"
    assert svc.coupon_for_store([a, b], "store-y") is None

def test_percentage_discount():
    assert svc.compute_discount(_coupon(value=10), 200.0) == 20.0

def test_fixed_discount_clamped_to_subtotal():
    assert svc.compute_discount(_coupon(kind="fixed_amount", value=500), 120.0) == 120.0

def test_min_spend_not_reached():
    assert svc.compute_discount(_coupon(value=10, min_spend=300), 200.0) == 0.0
    assert svc.compute_discount(_coupon(value=10, min_spend=200), 200.0) == 20.0

def test_discount_never_exceeds_subtotal():
    coupons = [_coupon(value=v) for v in (0, 50, 100, 150)] + \
              [_coupon(kind="fixed_amount", value=v) for v in (0, 1, 99.99, 1000)]
    for coupon in coupons:
        for subtotal in (0.0, 0.01, 10.0, 99.99, 1000.0):
            d = svc.compute_discount(coupon, subtotal)
            assert 0 <= d <= subtotal

def test_active_coupons_one_per_store_duplicates_dropped():
    save10 = _coupon(code="SAVE10")
    flat5 = _coupon(code="FLAT5", kind="fixed_amount", value=5)
    other = _coupon(store_id="store-y", code="SAVE10")
    active = svc.active_coupons([save10, other, save10, flat5])
    assert sorted((c.store_id, c.code) for c in active) == [("store-x", "FLAT5"), ("store-y", "SAVE10")]
    assert svc.active_coupons([]) == []
