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

from structlog import get_logger

from tokenswap.amm.admin import Administration
from tokenswap.amm.context import Context
from tokenswap.amm.models import LiquidityResult, Pool
from tokenswap.amm.pair_key import canonical_pair
from tokenswap.amm.plan import OperationPlan
from tokenswap.amm.pricing import optimal_deposit, share_issuance, share_redemption
from tokenswap.amm.registry import PoolRegistry
from tokenswap.amm.transfer import TransferLeg
from tokenswap.conf.settings import SwapSettings
from tokenswap.exception import (
    InsufficientLiquidity,
    InsufficientShares,
    InvalidAmount,
    MinimumLiquidity,
    PoolExists,
    PoolPaused,
    SlippageExceeded,
)
from tokenswap.pubsub import SwapEvents
from tokenswap.safemath import check_uint, safe_add, safe_sub
from tokenswap.types import Amount, TokenUid

logger = get_logger()


class LiquidityManager:
    """Creates pools and moves liquidity in and out of them.

    Tokens, amounts and minimums are given in the caller's order (`token_x` first) and results are reported in
    that same order. Pools are always stored in canonical order.
    """

    def __init__(self, settings: SwapSettings, admin: Administration) -> None:
        self.log = logger.new()
        self._settings = settings
        self._admin = admin

    def create_pool(
        self,
        registry: PoolRegistry,
        ctx: Context,
        token_x: TokenUid,
        token_y: TokenUid,
        amount_x: Amount,
        amount_y: Amount,
    ) -> OperationPlan[LiquidityResult]:
        """Create the pool of `token_x` and `token_y` with an initial deposit.

        `MINIMUM_LIQUIDITY` shares are locked forever so the pool can never be emptied.
        """
        if self._admin.paused:
            raise PoolPaused('pool creation is paused')
        key = canonical_pair(token_x, token_y)
        check_uint(amount_x, 'amount_x')
        check_uint(amount_y, 'amount_y')
        if amount_x == 0 or amount_y == 0:
            raise InvalidAmount('initial amounts must be positive')
        if registry.has_pool(key):
            raise PoolExists(f'pool {key} already exists')

        amount_a, amount_b = key.to_canonical(token_x, amount_x, amount_y)
        if amount_a * amount_b < self._settings.MIN_LIQUIDITY_PRODUCT:
            raise MinimumLiquidity(f'initial liquidity must be at least {self._settings.MIN_LIQUIDITY_PRODUCT}')
        minimum_liquidity = self._settings.MINIMUM_LIQUIDITY
        shares = share_issuance(amount_a, amount_b, 0, 0, 0, minimum_liquidity)

        pool = Pool(
            token_a=key.token_a,
            token_b=key.token_b,
            reserve_a=amount_a,
            reserve_b=amount_b,
            total_shares=safe_add(shares, minimum_liquidity),
            fee_bps=self._settings.FEE_BPS,
            created_at=ctx.block_height,
        )
        registry.put_pool(pool)
        registry.credit_shares(ctx.caller, key, shares)
        if minimum_liquidity > 0:
            registry.credit_shares(self._settings.LOCKED_LIQUIDITY_HOLDER, key, minimum_liquidity)

        counters = registry.get_counters()
        counters.total_pools += 1
        registry.put_counters(counters)

        custody = self._settings.CUSTODY_ADDRESS
        result = LiquidityResult(amount_x, amount_y, shares)
        self.log.debug('pool planned', pool=str(key), shares=shares)
        return OperationPlan(
            result=result,
            legs=[
                TransferLeg(token_x, amount_x, ctx.caller, custody),
                TransferLeg(token_y, amount_y, ctx.caller, custody),
            ],
            event=SwapEvents.POOL_CREATED,
            event_args=dict(pool=key, user=ctx.caller, result=result),
        )

    def add_liquidity(
        self,
        registry: PoolRegistry,
        ctx: Context,
        token_x: TokenUid,
        token_y: TokenUid,
        desired_x: Amount,
        desired_y: Amount,
        min_x: Amount,
        min_y: Amount,
    ) -> OperationPlan[LiquidityResult]:
        """Deposit the largest amounts keeping the pool ratio, never more than desired and never less than the
        minimums."""
        key = canonical_pair(token_x, token_y)
        for name, value in (('desired_x', desired_x), ('desired_y', desired_y), ('min_x', min_x), ('min_y', min_y)):
            check_uint(value, name)
        if desired_x == 0 or desired_y == 0:
            raise InvalidAmount('desired amounts must be positive')
        pool = registry.require_pool(key)
        if self._admin.paused:
            raise PoolPaused('adding liquidity is paused')
        if not pool.active:
            raise PoolPaused(f'pool {key} is not active')

        desired_a, desired_b = key.to_canonical(token_x, desired_x, desired_y)
        min_a, min_b = key.to_canonical(token_x, min_x, min_y)
        amount_a, amount_b = optimal_deposit(desired_a, desired_b, pool.reserve_a, pool.reserve_b)
        assert amount_a <= desired_a and amount_b <= desired_b
        if amount_a < min_a or amount_b < min_b:
            raise SlippageExceeded(f'deposit of {amount_a}/{amount_b} is below the minimum of {min_a}/{min_b}')
        if amount_a == 0 or amount_b == 0:
            raise MinimumLiquidity('deposit is too small')

        shares = share_issuance(
            amount_a, amount_b, pool.reserve_a, pool.reserve_b, pool.total_shares, self._settings.MINIMUM_LIQUIDITY
        )
        if shares == 0:
            raise MinimumLiquidity('deposit is too small to issue any share')

        pool.reserve_a = safe_add(pool.reserve_a, amount_a)
        pool.reserve_b = safe_add(pool.reserve_b, amount_b)
        pool.total_shares = safe_add(pool.total_shares, shares)
        registry.put_pool(pool)
        registry.credit_shares(ctx.caller, key, shares)

        amount_x, amount_y = key.to_canonical(token_x, amount_a, amount_b)
        custody = self._settings.CUSTODY_ADDRESS
        result = LiquidityResult(amount_x, amount_y, shares)
        self.log.debug('add liquidity planned', pool=str(key), shares=shares)
        return OperationPlan(
            result=result,
            legs=[
                TransferLeg(token_x, amount_x, ctx.caller, custody),
                TransferLeg(token_y, amount_y, ctx.caller, custody),
            ],
            event=SwapEvents.LIQUIDITY_ADDED,
            event_args=dict(pool=key, user=ctx.caller, result=result),
        )

    def remove_liquidity(
        self,
        registry: PoolRegistry,
        ctx: Context,
        token_x: TokenUid,
        token_y: TokenUid,
        shares: Amount,
        min_x: Amount,
        min_y: Amount,
    ) -> OperationPlan[LiquidityResult]:
        """Burn `shares` of the caller's position and release the pro-rata part of both reserves.

        Removing liquidity is allowed while the engine is paused or the pool is inactive.
        """
        key = canonical_pair(token_x, token_y)
        check_uint(shares, 'shares')
        check_uint(min_x, 'min_x')
        check_uint(min_y, 'min_y')
        if shares == 0:
            raise InvalidAmount('shares must be positive')
        pool = registry.require_pool(key)
        position = registry.get_position(ctx.caller, key)
        if position.shares < shares:
            raise InsufficientShares(f'position holds {position.shares} shares, {shares} requested')

        amount_a, amount_b = share_redemption(shares, pool.total_shares, pool.reserve_a, pool.reserve_b)
        min_a, min_b = key.to_canonical(token_x, min_x, min_y)
        if amount_a < min_a or amount_b < min_b:
            raise SlippageExceeded(f'withdrawal of {amount_a}/{amount_b} is below the minimum of {min_a}/{min_b}')
        if amount_a == 0 or amount_b == 0:
            raise InsufficientLiquidity('not enough shares to withdraw anything')

        pool.reserve_a = safe_sub(pool.reserve_a, amount_a)
        pool.reserve_b = safe_sub(pool.reserve_b, amount_b)
        pool.total_shares = safe_sub(pool.total_shares, shares)
        assert pool.total_shares == 0 or (pool.reserve_a > 0 and pool.reserve_b > 0)
        registry.put_pool(pool)
        registry.debit_shares(ctx.caller, key, shares)

        amount_x, amount_y = key.to_canonical(token_x, amount_a, amount_b)
        custody = self._settings.CUSTODY_ADDRESS
        result = LiquidityResult(amount_x, amount_y, shares)
        self.log.debug('remove liquidity planned', pool=str(key), shares=shares)
        return OperationPlan(
            result=result,
            legs=[
                TransferLeg(token_x, amount_x, custody, ctx.caller),
                TransferLeg(token_y, amount_y, custody, ctx.caller),
            ],
            event=SwapEvents.LIQUIDITY_REMOVED,
            event_args=dict(pool=key, user=ctx.caller, result=result),
        )
