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
from tokenswap.amm.models import Pool, SwapRecord, SwapResult
from tokenswap.amm.pair_key import PairKey, canonical_pair
from tokenswap.amm.plan import OperationPlan
from tokenswap.amm.pricing import constant_product, get_amount_in, get_amount_out, swap_fee
from tokenswap.amm.registry import PoolRegistry
from tokenswap.amm.transfer import TransferLeg
from tokenswap.conf.settings import SwapSettings
from tokenswap.exception import InvalidAmount, PoolPaused, SlippageExceeded
from tokenswap.pubsub import SwapEvents
from tokenswap.safemath import calculate_percentage, check_uint, safe_add, safe_sub
from tokenswap.types import Amount, TokenUid

logger = get_logger()


class SwapExecutor:
    """Prices and records swaps against a pool.

    Methods only buffer state changes into the registry they receive and return the custody legs the engine must
    execute before committing.
    """

    def __init__(self, settings: SwapSettings, admin: Administration) -> None:
        self.log = logger.new()
        self._settings = settings
        self._admin = admin

    def _load_pool(self, registry: PoolRegistry, key: PairKey) -> Pool:
        pool = registry.require_pool(key)
        if self._admin.paused:
            raise PoolPaused('swaps are paused')
        if not pool.active:
            raise PoolPaused(f'pool {key} is not active')
        return pool

    def swap_exact_tokens_for_tokens(
        self,
        registry: PoolRegistry,
        ctx: Context,
        token_in: TokenUid,
        token_out: TokenUid,
        amount_in: Amount,
        amount_out_min: Amount,
    ) -> OperationPlan[SwapResult]:
        """Swap exactly `amount_in` of `token_in` for as much `token_out` as possible, at least `amount_out_min`."""
        pool = self._load_pool(registry, canonical_pair(token_in, token_out))
        check_uint(amount_in, 'amount_in')
        check_uint(amount_out_min, 'amount_out_min')
        if amount_in == 0:
            raise InvalidAmount('amount_in must be positive')

        reserve_in = pool.get_reserve(token_in)
        reserve_out = pool.get_reserve(token_out)
        amount_out = get_amount_out(amount_in, reserve_in, reserve_out, pool.fee_bps)
        if amount_out < amount_out_min:
            raise SlippageExceeded(f'amount_out={amount_out} is below the minimum of {amount_out_min}')
        return self._settle(registry, ctx, pool, token_in, token_out, amount_in, amount_out)

    def swap_tokens_for_exact_tokens(
        self,
        registry: PoolRegistry,
        ctx: Context,
        token_in: TokenUid,
        token_out: TokenUid,
        amount_out: Amount,
        amount_in_max: Amount,
    ) -> OperationPlan[SwapResult]:
        """Receive exactly `amount_out` of `token_out` paying as little `token_in` as possible, at most
        `amount_in_max`."""
        pool = self._load_pool(registry, canonical_pair(token_in, token_out))
        check_uint(amount_out, 'amount_out')
        check_uint(amount_in_max, 'amount_in_max')
        if amount_out == 0:
            raise InvalidAmount('amount_out must be positive')

        reserve_in = pool.get_reserve(token_in)
        reserve_out = pool.get_reserve(token_out)
        amount_in = get_amount_in(amount_out, reserve_in, reserve_out, pool.fee_bps)
        if amount_in > amount_in_max:
            raise SlippageExceeded(f'amount_in={amount_in} is above the maximum of {amount_in_max}')
        return self._settle(registry, ctx, pool, token_in, token_out, amount_in, amount_out)

    def _settle(
        self,
        registry: PoolRegistry,
        ctx: Context,
        pool: Pool,
        token_in: TokenUid,
        token_out: TokenUid,
        amount_in: Amount,
        amount_out: Amount,
    ) -> OperationPlan[SwapResult]:
        product_before = constant_product(pool.reserve_a, pool.reserve_b)

        fee = swap_fee(amount_in, pool.fee_bps)
        protocol_fee = calculate_percentage(fee, self._admin.protocol_fee_rate)

        pool.update_reserve(token_in, safe_sub(amount_in, protocol_fee))
        pool.update_reserve(token_out, -amount_out)
        pool.cumulative_volume = safe_add(pool.cumulative_volume, amount_in)
        pool.cumulative_fee = safe_add(pool.cumulative_fee, fee)
        assert pool.reserve_a > 0 and pool.reserve_b > 0
        assert constant_product(pool.reserve_a, pool.reserve_b) >= product_before
        registry.put_pool(pool)

        if protocol_fee > 0:
            registry.add_protocol_fee(token_in, protocol_fee)

        counters = registry.get_counters()
        swap_id = counters.next_swap_id
        counters.next_swap_id += 1
        counters.total_swaps += 1
        registry.put_counters(counters)

        registry.append_swap_record(SwapRecord(
            id=swap_id,
            user=ctx.caller,
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            fee_paid=fee,
            block_height=ctx.block_height,
        ))

        custody = self._settings.CUSTODY_ADDRESS
        result = SwapResult(
            swap_id=swap_id,
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            fee_paid=fee,
            protocol_fee=protocol_fee,
        )
        self.log.debug('swap planned', pool=str(pool.key), **result._asdict())
        return OperationPlan(
            result=result,
            legs=[
                TransferLeg(token_in, amount_in, ctx.caller, custody),
                TransferLeg(token_out, amount_out, custody, ctx.caller),
            ],
            event=SwapEvents.SWAP_EXECUTED,
            event_args=dict(pool=pool.key, user=ctx.caller, result=result),
        )
