"""Tests for the allocation engine."""

import pytest

from fix_trade_sim.domain.allocation.engine import (
    AllocationEngine,
    AllocationStrategy,
    calculate_allocation,
    resolve_method,
)
from fix_trade_sim.domain.allocation.models import (
    AllocatedAccount,
    AllocationAccount,
    AllocationMethod,
)
from fix_trade_sim.domain.fix.tags import OrderType, Side
from fix_trade_sim.domain.orders.models import Order


def filled_order(
    cum_qty=100, avg_px=10.0, price=10.0, quantity=100, order_type=OrderType.LIMIT
):
    return Order(
        cl_ord_id="ORD-1",
        symbol="AAPL",
        side=Side.BUY,
        quantity=quantity,
        order_type=order_type,
        price=price,
        cum_qty=cum_qty,
        avg_px=avg_px,
    )


class TestProRata:
    """Test weight-proportional allocation."""

    def test_equal_weights_remainder_to_last(self):
        """Test the classic three-way split of 100.

        Given - 100 filled at 10.0 and three equal weights
        When - Allocated pro rata
        Then - The last account absorbs the rounding remainder
        """
        # Given - Three equal weights
        accounts = [
            AllocationAccount("A", weight=1),
            AllocationAccount("B", weight=1),
            AllocationAccount("C", weight=1),
        ]

        # When - We allocate
        result = calculate_allocation(
            AllocationMethod.PRO_RATA, filled_order(), accounts
        )

        # Then - 33 / 33 / 34
        assert result.quantities == [33, 33, 34]
        assert [a.net_money for a in result.accounts] == [330.0, 330.0, 340.0]
        assert [a.percent for a in result.accounts] == pytest.approx(
            [33.0, 33.0, 34.0]
        )
        assert result.total_qty == 100
        assert result.total_net_money == pytest.approx(1000.0)

    def test_unequal_weights(self):
        accounts = [AllocationAccount("A", weight=3), AllocationAccount("B", weight=7)]

        result = calculate_allocation("ProRata", filled_order(), accounts)

        assert result.quantities == [30, 70]

    def test_zero_weights_allocate_nothing(self):
        """Test that all-zero weights yield zero quantities, not an error."""
        accounts = [AllocationAccount("A", weight=0), AllocationAccount("B")]

        result = calculate_allocation("ProRata", filled_order(), accounts)

        assert result.quantities == [0, 0]
        assert [a.percent for a in result.accounts] == [0.0, 0.0]
        assert result.total_qty == 0

    def test_unfilled_order(self):
        accounts = [AllocationAccount("A", weight=1), AllocationAccount("B", weight=1)]

        result = calculate_allocation(
            "ProRata", filled_order(cum_qty=0, avg_px=None), accounts
        )

        assert result.quantities == [0, 0]
        assert [a.percent for a in result.accounts] == [0.0, 0.0]


class TestPercent:
    """Test percentage allocation."""

    def test_quarter_quarter_half(self):
        accounts = [
            AllocationAccount("A", percent=25),
            AllocationAccount("B", percent=25),
            AllocationAccount("C", percent=50),
        ]

        result = calculate_allocation(AllocationMethod.PERCENT, filled_order(), accounts)

        assert result.quantities == [25, 25, 50]
        assert [a.percent for a in result.accounts] == [25, 25, 50]

    def test_fractional_percentages_sum_to_fill(self):
        """Test that floored shares still sum to the filled quantity.

        Given - Seven shares split in thirds
        When - Allocated by percent
        Then - 2 / 2 / 3
        """
        # Given - Awkward split
        accounts = [
            AllocationAccount("A", percent=33.33),
            AllocationAccount("B", percent=33.33),
            AllocationAccount("C", percent=33.34),
        ]

        # When - We allocate 7 shares
        result = calculate_allocation(
            "Percent", filled_order(cum_qty=7, quantity=10), accounts
        )

        # Then - Sum is preserved
        assert result.quantities == [2, 2, 3]
        assert result.total_qty == 7

    def test_percentages_are_not_renormalized(self):
        """Test that the engine applies a bad total as given."""
        accounts = [
            AllocationAccount("A", percent=50),
            AllocationAccount("B", percent=30),
        ]

        result = calculate_allocation("Percent", filled_order(), accounts)

        assert result.quantities == [50, 50]


class TestFixedQuantity:
    """Test FixedQty and AvgPrice allocation."""

    @pytest.mark.parametrize(
        "method", [AllocationMethod.FIXED_QTY, AllocationMethod.AVG_PRICE]
    )
    def test_quantities_pass_through(self, method):
        """Test that each account gets exactly its quantity.

        Given - 10 and 15 shares at an average price of 50
        When - Allocated with a fixed-quantity method
        Then - Net money is quantity times average price
        """
        # Given - Fixed quantities
        accounts = [AllocationAccount("A", qty=10), AllocationAccount("B", qty=15)]
        order = filled_order(avg_px=50.0, price=50.0)

        # When - We allocate
        result = calculate_allocation(method, order, accounts)

        # Then - Unchanged quantities and priced net money
        assert result.quantities == [10, 15]
        assert [a.net_money for a in result.accounts] == [500.0, 750.0]
        assert result.total_net_money == 1250.0
        assert result.total_qty == 25
        assert all(a.percent is None for a in result.accounts)


class TestPriceBasis:
    """Test the average price fallback chain."""

    def test_limit_price_used_before_first_fill(self):
        order = filled_order(cum_qty=0, avg_px=None, price=20.0)

        result = calculate_allocation(
            "FixedQty", order, [AllocationAccount("A", qty=5)]
        )

        assert result.avg_px == 20.0
        assert result.total_net_money == 100.0

    def test_zero_when_no_price_known(self):
        order = filled_order(
            cum_qty=0, avg_px=None, price=None, order_type=OrderType.MARKET
        )

        result = calculate_allocation(
            "FixedQty", order, [AllocationAccount("A", qty=5)]
        )

        assert result.avg_px == 0
        assert result.total_net_money == 0


class TestAllocationEngine:
    """Test method resolution and the strategy registry."""

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError, match="Unknown allocation method: Bogus"):
            calculate_allocation("Bogus", filled_order(), [AllocationAccount("A")])

    def test_resolve_method_accepts_enum_and_name(self):
        assert resolve_method(AllocationMethod.PERCENT) is AllocationMethod.PERCENT
        assert resolve_method("AvgPrice") is AllocationMethod.AVG_PRICE

    def test_custom_strategy(self):
        """Test that a custom registry replaces the defaults."""

        class EverythingToFirst(AllocationStrategy):
            def allocate(self, accounts, total_qty, avg_px):
                return [
                    AllocatedAccount(
                        account=account.account,
                        qty=total_qty if index == 0 else 0,
                        net_money=(total_qty if index == 0 else 0) * avg_px,
                    )
                    for index, account in enumerate(accounts)
                ]

        engine = AllocationEngine(
            strategies={AllocationMethod.PRO_RATA: EverythingToFirst()}
        )
        accounts = [AllocationAccount("A"), AllocationAccount("B")]

        result = engine.calculate("ProRata", filled_order(), accounts)

        assert result.quantities == [100, 0]
        with pytest.raises(ValueError, match="No strategy registered"):
            engine.calculate("Percent", filled_order(), accounts)

    def test_result_to_dict(self):
        result = calculate_allocation(
            "FixedQty", filled_order(), [AllocationAccount("A", qty=10)]
        )

        data = result.to_dict()

        assert data["method"] == "FixedQty"
        assert data["accounts"] == [
            {"account": "A", "qty": 10, "percent": None, "net_money": 100.0}
        ]
