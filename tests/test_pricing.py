from tokenswap.amm.pricing import (
    get_amount_in,
    get_amount_out,
    optimal_deposit,
    price_impact_bps,
    quote,
    share_issuance,
    share_redemption,
    swap_fee,
)
from tokenswap.exception import InsufficientLiquidity, InsufficientShares, InvalidAmount, MinimumLiquidity
from tests.unittest import TestCase

FEE = 30


class PricingTestCase(TestCase):
    def test_amount_out_below_no_fee_maximum(self) -> None:
        reserve = 10_000_000
        amount_out = get_amount_out(1_000_000, reserve, reserve, FEE)
        self.assertGreater(amount_out, 0)
        self.assertLess(amount_out, 1_000_000 * reserve // 11_000_000)
        self.assertEqual(amount_out, 906_610)

    def test_amount_out(self) -> None:
        self.assertEqual(get_amount_out(1_000_000, 10**9, 10**9, FEE), 996_006)
        # without fee the formula is the plain constant product
        self.assertEqual(get_amount_out(100, 1_000, 1_000, 0), 90)

    def test_amount_out_boundaries(self) -> None:
        with self.assertRaises(InvalidAmount):
            get_amount_out(0, 1_000, 1_000, FEE)
        with self.assertRaises(InsufficientLiquidity):
            get_amount_out(100, 0, 1_000, FEE)
        with self.assertRaises(InsufficientLiquidity):
            get_amount_out(100, 1_000, 0, FEE)
        # the fee eats the whole input
        with self.assertRaises(InsufficientLiquidity):
            get_amount_out(1, 1_000, 1_000, FEE)
        with self.assertRaises(InvalidAmount):
            get_amount_out(100, 1_000, 1_000, 10_000)

    def test_amount_in(self) -> None:
        amount_in = get_amount_in(500_000, 10**9, 10**9, FEE)
        self.assertEqual(amount_in, 501_757)
        self.assertGreaterEqual(get_amount_out(amount_in, 10**9, 10**9, FEE), 500_000)
        self.assertLess(get_amount_out(amount_in - 1, 10**9, 10**9, FEE), 500_000)

    def test_amount_in_is_minimal(self) -> None:
        for _ in range(100):
            reserve_in = self.rng.randrange(10**6, 10**12)
            reserve_out = self.rng.randrange(10**6, 10**12)
            fee_bps = self.rng.choice([0, 5, 30, 100, 1000])
            amount_out = self.rng.randrange(1, reserve_out // 2)
            amount_in = get_amount_in(amount_out, reserve_in, reserve_out, fee_bps)
            self.assertGreaterEqual(get_amount_out(amount_in, reserve_in, reserve_out, fee_bps), amount_out)
            if amount_in > 1:
                try:
                    smaller = get_amount_out(amount_in - 1, reserve_in, reserve_out, fee_bps)
                except InsufficientLiquidity:
                    smaller = 0
                self.assertLess(smaller, amount_out)

    def test_amount_in_cannot_drain(self) -> None:
        with self.assertRaises(InsufficientLiquidity):
            get_amount_in(1_000, 1_000, 1_000, FEE)
        with self.assertRaises(InsufficientLiquidity):
            get_amount_in(2_000, 1_000, 1_000, FEE)
        with self.assertRaises(InvalidAmount):
            get_amount_in(0, 1_000, 1_000, FEE)

    def test_swap_fee(self) -> None:
        self.assertEqual(swap_fee(1_000_000, FEE), 3_000)
        self.assertEqual(swap_fee(1_000_000, 0), 0)
        # rounding goes to the pool
        self.assertEqual(swap_fee(1, FEE), 1)

    def test_quote(self) -> None:
        self.assertEqual(quote(100, 1_000, 2_000), 200)
        self.assertEqual(quote(1, 3, 2), 0)
        with self.assertRaises(InvalidAmount):
            quote(0, 1_000, 2_000)
        with self.assertRaises(InsufficientLiquidity):
            quote(100, 0, 2_000)

    def test_first_share_issuance(self) -> None:
        shares = share_issuance(50_000_000, 50_000_000, 0, 0, 0)
        self.assertGreater(shares, 0)
        self.assertLess(shares, 50_000_000)
        self.assertEqual(shares, 50_000_000 - 1_000)

    def test_first_share_issuance_is_geometric_mean(self) -> None:
        shares = share_issuance(100, 400, 0, 0, 0, minimum_liquidity=0)
        self.assertEqual(shares, 200)
        self.assertNotIn(shares, (100, 40_000))

    def test_first_share_issuance_too_small(self) -> None:
        with self.assertRaises(MinimumLiquidity):
            share_issuance(1_000, 1_000, 0, 0, 0)
        with self.assertRaises(MinimumLiquidity):
            share_issuance(100, 400, 0, 0, 0)

    def test_share_issuance_takes_smaller_claim(self) -> None:
        self.assertEqual(share_issuance(10, 30, 100, 200, 1_000), 100)
        self.assertEqual(share_issuance(10, 10, 100, 200, 1_000), 50)
        with self.assertRaises(InsufficientLiquidity):
            share_issuance(10, 10, 0, 200, 1_000)

    def test_share_redemption(self) -> None:
        self.assertEqual(share_redemption(100, 1_000, 500, 2_000), (50, 200))
        self.assertEqual(share_redemption(1, 3, 10, 10), (3, 3))
        self.assertEqual(share_redemption(1_000, 1_000, 500, 2_000), (500, 2_000))
        with self.assertRaises(InsufficientShares):
            share_redemption(1_001, 1_000, 500, 2_000)
        with self.assertRaises(InsufficientLiquidity):
            share_redemption(1, 0, 0, 0)

    def test_optimal_deposit(self) -> None:
        self.assertEqual(optimal_deposit(100, 500, 1_000, 2_000), (100, 200))
        self.assertEqual(optimal_deposit(100, 150, 1_000, 2_000), (75, 150))
        self.assertEqual(optimal_deposit(100, 200, 1_000, 2_000), (100, 200))
        self.assertEqual(optimal_deposit(7, 9, 0, 0), (7, 9))

    def test_optimal_deposit_never_exceeds_desired(self) -> None:
        for _ in range(100):
            reserve_a = self.rng.randrange(1, 10**12)
            reserve_b = self.rng.randrange(1, 10**12)
            desired_a = self.rng.randrange(1, 10**9)
            desired_b = self.rng.randrange(1, 10**9)
            amount_a, amount_b = optimal_deposit(desired_a, desired_b, reserve_a, reserve_b)
            self.assertLessEqual(amount_a, desired_a)
            self.assertLessEqual(amount_b, desired_b)
            self.assertTrue(amount_a == desired_a or amount_b == desired_b)

    def test_price_impact(self) -> None:
        amount_out = get_amount_out(1_000_000, 10**9, 10**9, FEE)
        self.assertEqual(price_impact_bps(1_000_000, amount_out, 10**9, 10**9), 39)
        # bigger trades move the price more
        big_out = get_amount_out(100_000_000, 10**9, 10**9, FEE)
        self.assertGreater(price_impact_bps(100_000_000, big_out, 10**9, 10**9), 39)
