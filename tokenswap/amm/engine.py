# Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from threading import RLock
from typing import Callable, Optional, TypeVar

from structlog import get_logger

from tokenswap.amm.admin import Administration
from tokenswap.amm.context import Context
from tokenswap.amm.liquidity import LiquidityManager
from tokenswap.amm.models import (
    ContractStats,
    LiquidityPosition,
    LiquidityResult,
    Pool,
    SwapQuote,
    SwapRecord,
    SwapResult,
)
from tokenswap.amm.pair_key import canonical_pair
from tokenswap.amm.plan import OperationPlan
from tokenswap.amm.pricing import get_amount_in, get_amount_out, price_impact_bps, quote, swap_fee
from tokenswap.amm.registry import PoolRegistry
from tokenswap.amm.storage import PoolBaseStorage, PoolChangesTracker, PoolMemoryStorage
from tokenswap.amm.swap import SwapExecutor
from tokenswap.amm.transfer import AssetLedger, AssetTransferAdapter, TransferLeg
from tokenswap.conf.get_settings import get_global_settings
from tokenswap.conf.settings import SwapSettings
from tokenswap.exception import (
    InvalidAmount,
    PoolNotFound,
    ReentrantCall,
    TokenSwapError,
    TransferFailed,
    Unauthorized,
)
from tokenswap.pubsub import PubSubManager, SwapEvents
from tokenswap.safemath import check_uint
from tokenswap.types import Address, Amount, SwapId, TokenUid

logger = get_logger()

T = TypeVar('T')


class TokenSwap:
    """Entry point of the swap engine.

    Write operations are serialized by a single lock. Each one buffers its state changes in a changes tracker,
    executes its custody transfers and only then commits, so a failed operation leaves no trace. Events are published
    after the commit. Calling a write operation while another one is still running (e.g. from a ledger callback)
    raises ReentrantCall.
    """

    def __init__(
        self,
        *,
        ledger: AssetLedger,
        admin: Administration,
        settings: Optional[SwapSettings] = None,
        storage: Optional[PoolBaseStorage] = None,
        pubsub: Optional[PubSubManager] = None,
    ) -> None:
        self.log = logger.new()
        self._settings = settings or get_global_settings()
        self.admin = admin
        self.storage = storage if storage is not None else PoolMemoryStorage()
        self.pubsub = pubsub or PubSubManager()
        self.transfers = AssetTransferAdapter(ledger)
        self._swaps = SwapExecutor(self._settings, admin)
        self._liquidity = LiquidityManager(self._settings, admin)
        self._lock = RLock()
        self._executing = False

    @property
    def settings(self) -> SwapSettings:
        return self._settings

    def _check_caller(self, ctx: Context) -> None:
        if ctx.caller in (self._settings.CUSTODY_ADDRESS, self._settings.LOCKED_LIQUIDITY_HOLDER):
            raise Unauthorized('reserved addresses cannot call the engine')

    def _execute(self, name: str, ctx: Context, operation: Callable[[PoolRegistry], OperationPlan[T]]) -> T:
        with self._lock:
            if self._executing:
                raise ReentrantCall(f'{name} called while another operation is executing')
            self._executing = True
            try:
                changes = PoolChangesTracker(self.storage)
                try:
                    self._check_caller(ctx)
                    plan = operation(PoolRegistry(changes))
                    self.transfers.transfer_all(plan.legs)
                except TokenSwapError as e:
                    changes.block()
                    log_fn = self.log.warn if isinstance(e, TransferFailed) else self.log.info
                    log_fn('operation failed', operation=name, caller=ctx.caller.hex(), error=type(e).__name__,
                           code=e.code, kind=e.kind.value, reason=str(e))
                    raise
                changes.commit()
            finally:
                self._executing = False
        self.log.info('operation executed', operation=name, caller=ctx.caller.hex(), block_height=ctx.block_height)
        self.pubsub.publish(plan.event, **plan.event_args)
        return plan.result

    def _execute_admin(self, name: str, ctx: Context, fn: Callable[[], None]) -> None:
        with self._lock:
            if self._executing:
                raise ReentrantCall(f'{name} called while another operation is executing')
            fn()

    # liquidity

    def create_pool(
        self,
        ctx: Context,
        token_x: TokenUid,
        token_y: TokenUid,
        amount_x: Amount,
        amount_y: Amount,
    ) -> LiquidityResult:
        return self._execute(
            'create_pool',
            ctx,
            lambda registry: self._liquidity.create_pool(registry, ctx, token_x, token_y, amount_x, amount_y),
        )

    def add_liquidity(
        self,
        ctx: Context,
        token_x: TokenUid,
        token_y: TokenUid,
        desired_x: Amount,
        desired_y: Amount,
        min_x: Amount = 0,
        min_y: Amount = 0,
    ) -> LiquidityResult:
        return self._execute(
            'add_liquidity',
            ctx,
            lambda registry: self._liquidity.add_liquidity(
                registry, ctx, token_x, token_y, desired_x, desired_y, min_x, min_y
            ),
        )

    def remove_liquidity(
        self,
        ctx: Context,
        token_x: TokenUid,
        token_y: TokenUid,
        shares: Amount,
        min_x: Amount = 0,
        min_y: Amount = 0,
    ) -> LiquidityResult:
        return self._execute(
            'remove_liquidity',
            ctx,
            lambda registry: self._liquidity.remove_liquidity(registry, ctx, token_x, token_y, shares, min_x, min_y),
        )

    # swaps

    def swap_exact_tokens_for_tokens(
        self,
        ctx: Context,
        token_in: TokenUid,
        token_out: TokenUid,
        amount_in: Amount,
        amount_out_min: Amount = 0,
    ) -> SwapResult:
        return self._execute(
            'swap_exact_tokens_for_tokens',
            ctx,
            lambda registry: self._swaps.swap_exact_tokens_for_tokens(
                registry, ctx, token_in, token_out, amount_in, amount_out_min
            ),
        )

    swap = swap_exact_tokens_for_tokens

    def swap_tokens_for_exact_tokens(
        self,
        ctx: Context,
        token_in: TokenUid,
        token_out: TokenUid,
        amount_out: Amount,
        amount_in_max: Amount,
    ) -> SwapResult:
        return self._execute(
            'swap_tokens_for_exact_tokens',
            ctx,
            lambda registry: self._swaps.swap_tokens_for_exact_tokens(
                registry, ctx, token_in, token_out, amount_out, amount_in_max
            ),
        )

    # administration

    def set_paused(self, ctx: Context, paused: bool) -> None:
        self._execute_admin('set_paused', ctx, lambda: self.admin.set_paused(ctx, paused))
        self.pubsub.publish(SwapEvents.ADMIN_PAUSED_CHANGED, paused=self.admin.paused)

    def set_protocol_fee_rate(self, ctx: Context, rate: int) -> None:
        self._execute_admin('set_protocol_fee_rate', ctx, lambda: self.admin.set_protocol_fee_rate(ctx, rate))
        self.pubsub.publish(SwapEvents.ADMIN_PROTOCOL_FEE_RATE_CHANGED, rate=self.admin.protocol_fee_rate)

    def set_owner(self, ctx: Context, new_owner: Address) -> None:
        self._execute_admin('set_owner', ctx, lambda: self.admin.set_owner(ctx, new_owner))
        self.pubsub.publish(SwapEvents.ADMIN_OWNER_CHANGED, owner=self.admin.owner)

    def set_pool_active(self, ctx: Context, token_x: TokenUid, token_y: TokenUid, active: bool) -> None:
        def operation(registry: PoolRegistry) -> OperationPlan[None]:
            self.admin.require_owner(ctx, 'change the pool status')
            key = canonical_pair(token_x, token_y)
            pool = registry.require_pool(key)
            pool.active = bool(active)
            registry.put_pool(pool)
            return OperationPlan(
                result=None,
                event=SwapEvents.POOL_STATUS_CHANGED,
                event_args=dict(pool=key, active=pool.active),
            )
        self._execute('set_pool_active', ctx, operation)

    def withdraw_protocol_fees(
        self,
        ctx: Context,
        token: TokenUid,
        recipient: Address,
        amount: Optional[Amount] = None,
    ) -> Amount:
        """Move accrued protocol fees out of custody. Withdraw everything when `amount` is None."""
        def operation(registry: PoolRegistry) -> OperationPlan[Amount]:
            self.admin.require_owner(ctx, 'withdraw protocol fees')
            accrued = registry.get_protocol_fee(token)
            to_withdraw = accrued if amount is None else check_uint(amount, 'amount')
            if to_withdraw == 0:
                raise InvalidAmount('nothing to withdraw')
            if to_withdraw > accrued:
                raise InvalidAmount(f'only {accrued} accrued, {to_withdraw} requested')
            registry.add_protocol_fee(token, -to_withdraw)
            return OperationPlan(
                result=to_withdraw,
                legs=[TransferLeg(token, to_withdraw, self._settings.CUSTODY_ADDRESS, recipient)],
                event=SwapEvents.ADMIN_PROTOCOL_FEES_WITHDRAWN,
                event_args=dict(token=token, recipient=recipient, amount=to_withdraw),
            )
        return self._execute('withdraw_protocol_fees', ctx, operation)

    # reads

    def _registry(self) -> PoolRegistry:
        return PoolRegistry(self.storage)

    def get_pool(self, token_x: TokenUid, token_y: TokenUid) -> Optional[Pool]:
        with self._lock:
            return self._registry().get_pool(canonical_pair(token_x, token_y))

    def get_pools(self) -> list[Pool]:
        with self._lock:
            registry = self._registry()
            return [registry.require_pool(key) for key in registry.iter_pool_keys()]

    def get_position(self, holder: Address, token_x: TokenUid, token_y: TokenUid) -> LiquidityPosition:
        with self._lock:
            return self._registry().get_position(holder, canonical_pair(token_x, token_y))

    def _require_pool(self, token_x: TokenUid, token_y: TokenUid) -> Pool:
        pool = self.get_pool(token_x, token_y)
        if pool is None:
            raise PoolNotFound(f'pool {canonical_pair(token_x, token_y)} does not exist')
        return pool

    def get_swap_quote(self, token_in: TokenUid, token_out: TokenUid, amount_in: Amount) -> SwapQuote:
        """Price a swap of exactly `amount_in` without executing it."""
        pool = self._require_pool(token_in, token_out)
        reserve_in, reserve_out = pool.get_reserve(token_in), pool.get_reserve(token_out)
        amount_out = get_amount_out(amount_in, reserve_in, reserve_out, pool.fee_bps)
        return SwapQuote(
            amount_in=amount_in,
            amount_out=amount_out,
            fee_paid=swap_fee(amount_in, pool.fee_bps),
            price_impact_bps=price_impact_bps(amount_in, amount_out, reserve_in, reserve_out),
        )

    def get_amount_in_quote(self, token_in: TokenUid, token_out: TokenUid, amount_out: Amount) -> SwapQuote:
        """Price a swap returning exactly `amount_out` without executing it."""
        pool = self._require_pool(token_in, token_out)
        reserve_in, reserve_out = pool.get_reserve(token_in), pool.get_reserve(token_out)
        amount_in = get_amount_in(amount_out, reserve_in, reserve_out, pool.fee_bps)
        return SwapQuote(
            amount_in=amount_in,
            amount_out=amount_out,
            fee_paid=swap_fee(amount_in, pool.fee_bps),
            price_impact_bps=price_impact_bps(amount_in, amount_out, reserve_in, reserve_out),
        )

    def quote_add_liquidity(self, token_in: TokenUid, amount_in: Amount, token_other: TokenUid) -> Amount:
        """Return how much `token_other` must be deposited along with `amount_in` of `token_in`."""
        pool = self._require_pool(token_in, token_other)
        return quote(amount_in, pool.get_reserve(token_in), pool.get_reserve(token_other))

    def get_swap_record(self, swap_id: SwapId) -> Optional[SwapRecord]:
        with self._lock:
            return self._registry().get_swap_record(swap_id)

    def get_contract_stats(self) -> ContractStats:
        with self._lock:
            counters = self._registry().get_counters()
            return ContractStats(
                total_pools=counters.total_pools,
                total_swaps=counters.total_swaps,
                paused=self.admin.paused,
                protocol_fee_rate=self.admin.protocol_fee_rate,
            )

    def get_protocol_fees(self, token: TokenUid) -> Amount:
        with self._lock:
            return self._registry().get_protocol_fee(token)
