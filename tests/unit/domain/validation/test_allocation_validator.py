"""Tests for allocation instruction validation."""

import pytest

from fix_trade_sim.domain.allocation.models import (
    AllocationAccount,
    AllocationMethod,
)
from fix_trade_sim.domain.validation.allocation_validator import (
    validate_allocation,
)


class TestAccountList:
    """Test checks that apply to every method."""

    def test_empty_account_list_reported_alone(self):
        result = validate_allocation(AllocationMethod.PERCENT, [], 100)

        assert not result.valid
        assert result.errors == ["At least one account is required"]

    def test_blank_account_ids(self):
        """Test that each blank account id is reported.

        Given - Two accounts, one blank and one whitespace only
        When - Validated for ProRata
        Then - Two empty-id errors are reported
        """
        # Given - Blank ids
        accounts = [
            AllocationAccount("", weight=1),
            AllocationAccount("   ", weight=1),
            AllocationAccount("FUND-A", weight=1),
        ]

        # When - We validate
        result = validate_allocation(AllocationMethod.PRO_RATA, accounts, 100)

        # Then - One error per blank id
        assert result.errors == [
            "Account ID cannot be empty",
            "Account ID cannot be empty",
        ]

    def test_pro_rata_needs_no_total(self):
        accounts = [AllocationAccount("A", weight=3), AllocationAccount("B", weight=7)]

        assert validate_allocation("ProRata", accounts, 100).valid

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError, match="Unknown allocation method"):
            validate_allocation("Random", [AllocationAccount("A")], 100)


class TestPercentTotals:
    """Test the percent method's 100% rule."""

    def test_percent_under_100(self):
        accounts = [
            AllocationAccount("A", percent=60),
            AllocationAccount("B", percent=30),
        ]

        result = validate_allocation(AllocationMethod.PERCENT, accounts, 100)

        assert result.errors == ["Total percentage must equal 100% (got 90.00%)"]

    def test_float_rounding_within_tolerance(self):
        """Test that thirds that sum to 100 up to float error pass."""
        accounts = [
            AllocationAccount("A", percent=33.33),
            AllocationAccount("B", percent=33.33),
            AllocationAccount("C", percent=33.34),
        ]

        assert validate_allocation("Percent", accounts, 100).valid

    def test_custom_tolerance(self):
        accounts = [
            AllocationAccount("A", percent=50),
            AllocationAccount("B", percent=49.5),
        ]

        assert not validate_allocation("Percent", accounts, 100).valid
        assert validate_allocation("Percent", accounts, 100, tolerance=1.0).valid

    def test_errors_accumulate(self):
        """Test that blank ids and the percent total are both reported."""
        accounts = [
            AllocationAccount("", percent=50),
            AllocationAccount("B", percent=20),
        ]

        result = validate_allocation("Percent", accounts, 100)

        assert result.errors == [
            "Account ID cannot be empty",
            "Total percentage must equal 100% (got 70.00%)",
        ]


class TestFixedQuantities:
    """Test over-allocation for the fixed-quantity methods."""

    @pytest.mark.parametrize(
        "method", [AllocationMethod.FIXED_QTY, AllocationMethod.AVG_PRICE]
    )
    def test_over_allocation(self, method):
        """Test that allocating more than was filled is rejected.

        Given - 60 + 50 against a fill of 100
        When - Validated
        Then - The over-allocation is reported with both totals
        """
        # Given - Quantities exceeding the fill
        accounts = [AllocationAccount("A", qty=60), AllocationAccount("B", qty=50)]

        # When - We validate
        result = validate_allocation(method, accounts, 100)

        # Then - Over-allocation error
        assert result.errors == [
            "Total allocated quantity (110) exceeds order quantity (100)"
        ]

    def test_over_allocation_reports_large_quantities_exactly(self):
        """Test that totals above a million keep every digit.

        Given - 1,000,001 allocated against 1,000,000 filled
        When - Validated
        Then - Both quantities appear in full and are distinguishable
        """
        # Given - One unit too many
        accounts = [AllocationAccount("A", qty=1_000_001)]

        # When - We validate
        result = validate_allocation(AllocationMethod.FIXED_QTY, accounts, 1_000_000)

        # Then - Exact values
        assert result.errors == [
            "Total allocated quantity (1000001) exceeds order quantity (1000000)"
        ]

    def test_over_allocation_keeps_fractional_quantities(self):
        accounts = [AllocationAccount("A", qty=100.25)]

        result = validate_allocation(AllocationMethod.FIXED_QTY, accounts, 100)

        assert result.errors == [
            "Total allocated quantity (100.25) exceeds order quantity (100)"
        ]

    def test_exact_and_partial_allocation_allowed(self):
        exact = [AllocationAccount("A", qty=60), AllocationAccount("B", qty=40)]
        partial = [AllocationAccount("A", qty=10)]

        assert validate_allocation("FixedQty", exact, 100).valid
        assert validate_allocation("FixedQty", partial, 100).valid
