"""Moving average cost of catalog items.

Every catalog item carries one rolling cost per base unit.  Incoming stock
blends its cost into that figure weighted by quantity, reversals back their
cost out again, and an override hard-sets it.  After each refresh the buy
price and profit figures of every unit variant are recomputed from the new
cost.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import NamedTuple

from .database import SQLiteRepository
from .errors import ValuationPreconditionError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class VariantPricing(NamedTuple):
    buy_price: Decimal
    profit_amount: Decimal
    profit_percentage: Decimal


def _as_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_average_cost(
    current_price: Decimal,
    stock_after: Decimal,
    incoming_qty: Decimal,
    incoming_cost: Decimal,
    is_override: bool = False,
) -> Decimal:
    """Return the new average cost per base unit.

    Args:
        current_price: Average cost before this movement.
        stock_after: Stock across all branches, already including
            ``incoming_qty``.
        incoming_qty: Base units added (positive) or removed (negative).
        incoming_cost: Cost per base unit of the moved quantity.
        is_override: Ignore history and use ``incoming_cost`` as is.

    The result is never negative: a reversal that would push the cost below
    zero keeps ``current_price``.
    """

    if is_override:
        return incoming_cost
    if incoming_qty == 0:
        return current_price

    if incoming_qty > 0:
        stock_before = stock_after - incoming_qty
        if stock_before <= 0 or stock_after <= 0:
            # This movement is the whole stock; there is no history to blend.
            return incoming_cost
        total_value = current_price * stock_before + incoming_cost * incoming_qty
        return total_value / stock_after

    stock_before_delete = stock_after - incoming_qty
    if stock_before_delete <= 0 or stock_after <= 0:
        return current_price
    remaining_value = current_price * stock_before_delete - incoming_cost * abs(incoming_qty)
    new_price = remaining_value / stock_after
    if new_price < 0:
        return current_price
    return new_price


def price_variant(average_buy_price: Decimal, conversion_factor: Decimal, sell_price: Decimal) -> VariantPricing:
    """Derive a unit variant's buy price and profit from the item's average cost."""

    buy_price = average_buy_price * conversion_factor
    profit_amount = sell_price - buy_price
    if buy_price > 0:
        profit_percentage = profit_amount / buy_price * HUNDRED
    else:
        profit_percentage = ZERO
    return VariantPricing(buy_price, profit_amount, profit_percentage)


class ValuationEngine:
    """Keeps catalog item costs and unit variant profits up to date."""

    def __init__(self, repository: SQLiteRepository) -> None:
        self._repository = repository

    def refresh_cost(
        self,
        catalog_item_id: int,
        incoming_base_qty: Decimal | int | float,
        incoming_unit_cost: Decimal | int | float,
        is_override: bool = False,
    ) -> Decimal:
        """Recompute the average cost of an item after a stock movement.

        The caller updates stock first, so the aggregate stock read here
        already includes ``incoming_base_qty``.  Variant prices are refreshed
        even when the average cost does not change.

        Returns:
            The average buy price after the refresh.

        Raises:
            ValuationPreconditionError: if the catalog item does not exist.
        """

        item = self._repository.get_catalog_item(catalog_item_id)
        if item is None:
            raise ValuationPreconditionError(catalog_item_id)

        incoming_qty = _as_decimal(incoming_base_qty)
        incoming_cost = _as_decimal(incoming_unit_cost)
        stock_after = self._repository.total_stock(catalog_item_id)
        new_price = compute_average_cost(
            item.average_buy_price,
            stock_after,
            incoming_qty,
            incoming_cost,
            is_override,
        )

        with self._repository.atomic():
            if new_price != item.average_buy_price:
                self._repository.set_average_buy_price(catalog_item_id, new_price)
                logger.debug(
                    "Average cost of %s changed from %s to %s",
                    item.code,
                    item.average_buy_price,
                    new_price,
                )
            for variant in self._repository.list_unit_variants(catalog_item_id):
                pricing = price_variant(new_price, variant.conversion_factor, variant.sell_price)
                self._repository.update_variant_pricing(variant.id, *pricing)
        return new_price


__all__ = [
    "ValuationEngine",
    "VariantPricing",
    "compute_average_cost",
    "price_variant",
]
