from decimal import Decimal

import pytest

from retail_ingest.errors import ValuationPreconditionError
from retail_ingest.valuation import ValuationEngine, compute_average_cost, price_variant


def D(value):
    return Decimal(str(value))


class TestComputeAverageCost:
    def test_first_purchase_sets_cost(self):
        assert compute_average_cost(D(0), D(10), D(10), D(100)) == D(100)

    def test_second_purchase_blends_by_quantity(self):
        assert compute_average_cost(D(100), D(20), D(10), D(200)) == D(150)

    def test_purchase_on_non_positive_stock_takes_incoming_cost(self):
        assert compute_average_cost(D(80), D(4), D(10), D(120)) == D(120)

    def test_zero_quantity_keeps_cost(self):
        assert compute_average_cost(D(100), D(20), D(0), D(500)) == D(100)

    def test_override_ignores_history(self):
        assert compute_average_cost(D(100), D(20), D(0), D(999), is_override=True) == D(999)
        assert compute_average_cost(D(100), D(-5), D(3), D(7), is_override=True) == D(7)

    def test_reversal_backs_cost_out(self):
        # 20 units at 150 before removing 10 bought at 200.
        assert compute_average_cost(D(150), D(10), D(-10), D(200)) == D(100)

    def test_reversal_never_goes_negative(self):
        assert compute_average_cost(D(100), D(5), D(-5), D(500)) == D(100)

    def test_reversal_without_positive_stock_keeps_cost(self):
        assert compute_average_cost(D(100), D(-10), D(-5), D(50)) == D(100)
        assert compute_average_cost(D(100), D(0), D(-5), D(50)) == D(100)


def test_price_variant_scales_cost_by_conversion_factor():
    pricing = price_variant(D(100), D(12), D(1500))

    assert pricing.buy_price == D(1200)
    assert pricing.profit_amount == D(300)
    assert pricing.profit_percentage == D(25)


def test_price_variant_without_cost_has_zero_percentage():
    pricing = price_variant(D(0), D(1), D(1000))

    assert pricing.buy_price == D(0)
    assert pricing.profit_amount == D(1000)
    assert pricing.profit_percentage == D(0)


def test_refresh_cost_follows_purchases(repository, branch, make_item):
    item = make_item(variants=(("PCS", "1", "120"), ("DUS", "12", "2000")))
    engine = ValuationEngine(repository)

    repository.adjust_stock(item.id, branch.id, D(10))
    assert engine.refresh_cost(item.id, 10, 100) == D(100)

    repository.adjust_stock(item.id, branch.id, D(10))
    assert engine.refresh_cost(item.id, 10, 200) == D(150)

    assert repository.get_catalog_item(item.id).average_buy_price == D(150)
    pcs, dus = repository.list_unit_variants(item.id)
    assert pcs.buy_price == D(150)
    assert pcs.profit_amount == D(-30)
    assert pcs.profit_percentage == D(-20)
    assert dus.buy_price == D(1800)
    assert dus.profit_amount == D(200)


def test_refresh_cost_uses_stock_of_all_branches(repository, branch, make_item):
    item = make_item()
    other = repository.resolve_branch("B2", "Second Branch").entity
    engine = ValuationEngine(repository)
    repository.adjust_stock(item.id, other.id, D(30))
    repository.set_average_buy_price(item.id, D(100))

    repository.adjust_stock(item.id, branch.id, D(10))

    assert engine.refresh_cost(item.id, 10, 200) == D(125)


def test_override_sets_cost_regardless_of_history(repository, branch, make_item):
    item = make_item(variants=(("PCS", "2", "0"),))
    engine = ValuationEngine(repository)
    repository.adjust_stock(item.id, branch.id, D(10))
    engine.refresh_cost(item.id, 10, 100)

    assert engine.refresh_cost(item.id, 0, 999, is_override=True) == D(999)
    assert repository.list_unit_variants(item.id)[0].buy_price == D(1998)


def test_variants_are_refreshed_when_cost_is_unchanged(repository, make_item):
    item = make_item(variants=(("PCS", "1", "1000"),))

    ValuationEngine(repository).refresh_cost(item.id, 0, 5)

    (variant,) = repository.list_unit_variants(item.id)
    assert variant.buy_price == D(0)
    assert variant.profit_amount == D(1000)
    assert variant.profit_percentage == D(0)


def test_refresh_cost_of_unknown_item_fails(repository):
    with pytest.raises(ValuationPreconditionError):
        ValuationEngine(repository).refresh_cost(404, 1, 1)
