import threading
from typing import Callable, Optional

from tokenswap.amm.transfer import AssetTransferAdapter, MemoryAssetLedger, TransferLeg
from tokenswap.exception import InvalidAmount, ReentrantCall, TransferFailed
from tokenswap.types import Address, Amount, TokenUid
from tests.unittest import ALICE, BOB, INITIAL_BALANCE, TOKEN_A, TOKEN_B, TOKEN_C, TestCase


class ReentrantLedger(MemoryAssetLedger):
    """Ledger that calls back into the engine on the next transfer."""

    def __init__(self) -> None:
        super().__init__()
        self.callback: Optional[Callable[[], None]] = None

    def transfer(self, token: TokenUid, amount: Amount, sender: Address, recipient: Address) -> bool:
        if self.callback is not None:
            callback, self.callback = self.callback, None
            callback()
        return super().transfer(token, amount, sender, recipient)


class UnreachableLedger(MemoryAssetLedger):
    """Ledger that raises instead of answering when asked to move `failing_token`."""

    def __init__(self, failing_token: TokenUid) -> None:
        super().__init__()
        self.failing_token = failing_token

    def transfer(self, token: TokenUid, amount: Amount, sender: Address, recipient: Address) -> bool:
        if token == self.failing_token:
            raise ConnectionError('ledger unreachable')
        return super().transfer(token, amount, sender, recipient)


class MemoryAssetLedgerTestCase(TestCase):
    def test_transfer(self) -> None:
        ledger = MemoryAssetLedger()
        ledger.mint(TOKEN_A, ALICE, 100)
        self.assertTrue(ledger.transfer(TOKEN_A, 60, ALICE, BOB))
        self.assertEqual(ledger.balance_of(TOKEN_A, ALICE), 40)
        self.assertEqual(ledger.balance_of(TOKEN_A, BOB), 60)
        self.assertFalse(ledger.transfer(TOKEN_A, 41, ALICE, BOB))
        self.assertFalse(ledger.transfer(TOKEN_B, 1, ALICE, BOB))
        self.assertEqual(ledger.get_all_balances(), {(TOKEN_A, ALICE): 40, (TOKEN_A, BOB): 60})

    def test_fail_after(self) -> None:
        ledger = MemoryAssetLedger()
        ledger.mint(TOKEN_A, ALICE, 100)
        ledger.fail_after(1)
        self.assertTrue(ledger.transfer(TOKEN_A, 1, ALICE, BOB))
        self.assertFalse(ledger.transfer(TOKEN_A, 1, ALICE, BOB))
        self.assertTrue(ledger.transfer(TOKEN_A, 1, ALICE, BOB))
        self.assertEqual(ledger.balance_of(TOKEN_A, BOB), 2)


class AssetTransferAdapterTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.ledger = MemoryAssetLedger()
        self.ledger.mint(TOKEN_A, ALICE, 1_000)
        self.ledger.mint(TOKEN_B, BOB, 1_000)
        self.adapter = AssetTransferAdapter(self.ledger)

    def test_transfer(self) -> None:
        self.adapter.transfer(TransferLeg(TOKEN_A, 10, ALICE, BOB))
        self.assertEqual(self.ledger.balance_of(TOKEN_A, BOB), 10)
        with self.assertRaises(TransferFailed):
            self.adapter.transfer(TransferLeg(TOKEN_A, 10_000, ALICE, BOB))
        with self.assertRaises(InvalidAmount):
            self.adapter.transfer(TransferLeg(TOKEN_A, 0, ALICE, BOB))

    def test_transfer_all_reverses_completed_legs(self) -> None:
        before = self.ledger.get_all_balances()
        legs = [
            TransferLeg(TOKEN_A, 100, ALICE, BOB),
            TransferLeg(TOKEN_B, 200, BOB, ALICE),
            TransferLeg(TOKEN_A, 5_000, ALICE, BOB),
        ]
        with self.assertRaises(TransferFailed):
            self.adapter.transfer_all(legs)
        self.assertEqual(self.ledger.get_all_balances(), before)

    def test_transfer_all_wraps_ledger_errors(self) -> None:
        ledger = UnreachableLedger(TOKEN_B)
        ledger.mint(TOKEN_A, ALICE, 1_000)
        ledger.mint(TOKEN_B, BOB, 1_000)
        adapter = AssetTransferAdapter(ledger)
        before = ledger.get_all_balances()
        legs = [TransferLeg(TOKEN_A, 100, ALICE, BOB), TransferLeg(TOKEN_B, 200, BOB, ALICE)]
        with self.assertRaises(TransferFailed) as cm:
            adapter.transfer_all(legs)
        self.assertIsInstance(cm.exception.__cause__, ConnectionError)
        self.assertEqual(ledger.get_all_balances(), before)

    def test_transfer_all_skips_zero_legs(self) -> None:
        self.adapter.transfer_all([TransferLeg(TOKEN_A, 0, ALICE, BOB), TransferLeg(TOKEN_B, 1, BOB, ALICE)])
        self.assertEqual(self.ledger.balance_of(TOKEN_B, ALICE), 1)


class RollbackTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.create_engine()
        self.create_pool()
        self.fund(BOB, TOKEN_A, TOKEN_B)

    def test_swap_rolls_back_when_payout_fails(self) -> None:
        before = self.snapshot()
        events = len(self.events)
        # the deposit goes through, the payout is refused
        self.ledger.fail_after(1)
        with self.assertRaises(TransferFailed):
            self.engine.swap(self.ctx(BOB), TOKEN_A, TOKEN_B, 1_000_000)
        self.assertEqual(self.snapshot(), before)
        self.assertIsNone(self.engine.get_swap_record(1))
        self.assertEqual(len(self.events), events)

        result = self.engine.swap(self.ctx(BOB), TOKEN_A, TOKEN_B, 1_000_000)
        self.assertEqual(result.swap_id, 1)

    def test_swap_rolls_back_when_the_ledger_raises(self) -> None:
        ledger = UnreachableLedger(TOKEN_B)
        self.create_engine(ledger=ledger)
        self.create_pool(TOKEN_A, TOKEN_C)
        self.fund(BOB, TOKEN_A, TOKEN_C)
        before = self.snapshot()
        ledger.failing_token = TOKEN_C
        with self.assertRaises(TransferFailed) as cm:
            self.engine.swap(self.ctx(BOB), TOKEN_A, TOKEN_C, 1_000_000)
        self.assertEqual(cm.exception.code, 5008)
        self.assertIsInstance(cm.exception.__cause__, ConnectionError)
        self.assertEqual(self.snapshot(), before)
        self.assertEqual(self.ledger.balance_of(TOKEN_A, BOB), INITIAL_BALANCE)

    def test_add_liquidity_rolls_back(self) -> None:
        before = self.snapshot()
        self.ledger.fail_after(1)
        with self.assertRaises(TransferFailed):
            self.engine.add_liquidity(self.ctx(BOB), TOKEN_A, TOKEN_B, 10**6, 10**6)
        self.assertEqual(self.snapshot(), before)

    def test_remove_liquidity_rolls_back(self) -> None:
        before = self.snapshot()
        self.ledger.fail_after(0)
        with self.assertRaises(TransferFailed):
            self.engine.remove_liquidity(self.ctx(ALICE), TOKEN_A, TOKEN_B, 10**6)
        self.assertEqual(self.snapshot(), before)

    def test_create_pool_rolls_back(self) -> None:
        self.fund(ALICE, TOKEN_C)
        before = self.snapshot()
        self.ledger.fail_after(1)
        with self.assertRaises(TransferFailed):
            self.engine.create_pool(self.ctx(ALICE), TOKEN_A, TOKEN_C, 10**9, 10**9)
        self.assertEqual(self.snapshot(), before)
        self.assertIsNone(self.engine.get_pool(TOKEN_A, TOKEN_C))


class ReentrancyTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.reentrant_ledger = ReentrantLedger()
        self.create_engine(ledger=self.reentrant_ledger)
        self.create_pool()
        self.fund(BOB, TOKEN_A, TOKEN_B)

    def test_reentrant_swap_is_rejected(self) -> None:
        before = self.snapshot()
        inner_errors: list[Exception] = []

        def reenter() -> None:
            try:
                self.engine.swap(self.ctx(BOB), TOKEN_A, TOKEN_B, 1_000)
            except ReentrantCall as e:
                inner_errors.append(e)
                raise

        self.reentrant_ledger.callback = reenter
        with self.assertRaises(ReentrantCall) as cm:
            self.engine.swap(self.ctx(BOB), TOKEN_A, TOKEN_B, 1_000_000)
        self.assertEqual(cm.exception.code, 5009)
        self.assertEqual(len(inner_errors), 1)
        self.assertEqual(self.snapshot(), before)

        # the engine is usable again afterwards
        self.engine.swap(self.ctx(BOB), TOKEN_A, TOKEN_B, 1_000_000)

    def test_reads_are_allowed_during_an_operation(self) -> None:
        seen: list[int] = []

        def read() -> None:
            pool = self.engine.get_pool(TOKEN_A, TOKEN_B)
            assert pool is not None
            seen.append(pool.reserve_a)

        self.reentrant_ledger.callback = read
        self.engine.swap(self.ctx(BOB), TOKEN_A, TOKEN_B, 1_000_000)
        # reads only see committed state
        self.assertEqual(seen, [10**9])


class ConcurrencyTestCase(TestCase):
    def test_concurrent_swaps(self) -> None:
        self.create_engine()
        self.create_pool()
        callers = [bytes([0xd0 + i]) * 25 for i in range(4)]
        for caller in callers:
            self.fund(caller, TOKEN_A, TOKEN_B)
        swaps_per_caller = 25
        errors: list[Exception] = []

        def run(caller: bytes) -> None:
            try:
                for i in range(swaps_per_caller):
                    token_in, token_out = (TOKEN_A, TOKEN_B) if i % 2 else (TOKEN_B, TOKEN_A)
                    self.engine.swap(self.ctx(caller), token_in, token_out, 10_000 + i)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=run, args=(caller,)) for caller in callers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        total = len(callers) * swaps_per_caller
        self.assertEqual(self.engine.get_contract_stats().total_swaps, total)
        for i in range(1, total + 1):
            self.assertIsNotNone(self.engine.get_swap_record(i))
        self.assertIsNone(self.engine.get_swap_record(total + 1))
        pool = self.engine.get_pool(TOKEN_A, TOKEN_B)
        assert pool is not None
        self.assertEqual(self.custody_balance(TOKEN_A), pool.reserve_a)
        self.assertEqual(self.custody_balance(TOKEN_B), pool.reserve_b)
        supply = sum(self.ledger.balance_of(TOKEN_A, holder) for holder in (ALICE, *callers))
        self.assertEqual(supply + self.custody_balance(TOKEN_A), (len(callers) + 1) * INITIAL_BALANCE)
