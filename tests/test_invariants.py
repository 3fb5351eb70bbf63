from tokenswap.amm.pricing import constant_product
from tokenswap.exception import TokenSwapError
from tests.unittest import ALICE, BOB, OWNER, TOKEN_A, TOKEN_B, TOKEN_C, TestCase

TOKENS = (TOKEN_A, TOKEN_B, TOKEN_C)
USERS = (ALICE, BOB)


class RandomOperationsTestCase(TestCase):
    """Run random sequences of operations and check the invariants that must hold after every one of them."""

    def setUp(self) -> None:
        super().setUp()
        self.create_engine(protocol_fee_rate=self.rng.choice([0, 10, 50]))
        for user in USERS:
            self.fund(user, *TOKENS)
        self.create_pool(TOKEN_A, TOKEN_B, 10**9, 3 * 10**9)
        self.create_pool(TOKEN_C, TOKEN_B, 5 * 10**8, 10**9, caller=BOB)

    def _random_pair(self) -> tuple[bytes, bytes]:
        token_x, token_y = self.rng.sample([(TOKEN_A, TOKEN_B), (TOKEN_B, TOKEN_C)][self.rng.randrange(2)], 2)
        return token_x, token_y

    def _random_step(self) -> str:
        user = self.rng.choice(USERS)
        token_x, token_y = self._random_pair()
        ctx = self.ctx(user, self.rng.randrange(1, 1_000))
        op = self.rng.choice(['swap', 'swap_exact_out', 'add', 'remove', 'pause'])
        if op == 'swap':
            self.engine.swap(ctx, token_x, token_y, self.rng.randrange(0, 10**8), self.rng.randrange(0, 10**6))
        elif op == 'swap_exact_out':
            self.engine.swap_tokens_for_exact_tokens(ctx, token_x, token_y, self.rng.randrange(0, 10**7),
                                                     self.rng.randrange(0, 10**8))
        elif op == 'add':
            self.engine.add_liquidity(ctx, token_x, token_y, self.rng.randrange(0, 10**8),
                                      self.rng.randrange(0, 10**8))
        elif op == 'remove':
            position = self.engine.get_position(user, token_x, token_y)
            self.engine.remove_liquidity(ctx, token_x, token_y, self.rng.randrange(0, position.shares + 2))
        else:
            self.engine.set_paused(self.ctx(OWNER), self.rng.random() < 0.2)
        return op

    def _check_invariants(self) -> None:
        settings = self._settings
        holders = (*USERS, settings.LOCKED_LIQUIDITY_HOLDER)
        reserves = {token: 0 for token in TOKENS}
        for pool in self.engine.get_pools():
            self.assertEqual(pool.total_shares == 0, pool.reserve_a == 0 and pool.reserve_b == 0)
            self.assertGreaterEqual(pool.total_shares, settings.MINIMUM_LIQUIDITY)
            shares = sum(self.engine.get_position(holder, pool.token_a, pool.token_b).shares for holder in holders)
            self.assertEqual(shares, pool.total_shares)
            reserves[pool.token_a] += pool.reserve_a
            reserves[pool.token_b] += pool.reserve_b
        # custody holds exactly the reserves plus the accrued protocol fees
        for token in TOKENS:
            self.assertEqual(self.custody_balance(token), reserves[token] + self.engine.get_protocol_fees(token))

        stats = self.engine.get_contract_stats()
        self.assertEqual(stats.total_pools, 2)
        for swap_id in range(1, stats.total_swaps + 1):
            self.assertIsNotNone(self.engine.get_swap_record(swap_id))
        self.assertIsNone(self.engine.get_swap_record(stats.total_swaps + 1))

    def test_random_operations(self) -> None:
        for _ in range(300):
            before = {(pool.token_a, pool.token_b): constant_product(pool.reserve_a, pool.reserve_b)
                      for pool in self.engine.get_pools()}
            snapshot = self.snapshot()
            try:
                op = self._random_step()
            except TokenSwapError:
                self.assertEqual(self.snapshot(), snapshot)
                continue
            if op in ('swap', 'swap_exact_out'):
                for pool in self.engine.get_pools():
                    key = (pool.token_a, pool.token_b)
                    self.assertGreaterEqual(constant_product(pool.reserve_a, pool.reserve_b), before[key])
            self._check_invariants()
