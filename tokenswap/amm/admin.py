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

from typing import Optional

from structlog import get_logger

from tokenswap.amm.context import Context
from tokenswap.conf.settings import SwapSettings
from tokenswap.exception import InvalidAmount, Unauthorized
from tokenswap.safemath import check_uint
from tokenswap.types import Address

logger = get_logger()


class Administration:
    """Owner-gated engine configuration: who the owner is, the global pause switch and the protocol fee rate.

    The protocol fee rate is the percentage of each trading fee kept by the protocol instead of going to the
    liquidity providers.
    """

    def __init__(
        self,
        owner: Address,
        *,
        paused: bool = False,
        protocol_fee_rate: int = 0,
        max_protocol_fee_rate: int = 50,
    ) -> None:
        if not isinstance(owner, bytes) or not owner:
            raise TypeError('owner must be a non-empty bytes address')
        check_uint(max_protocol_fee_rate, 'max_protocol_fee_rate')
        self.log = logger.new()
        self.owner = owner
        self.paused = paused
        self.max_protocol_fee_rate = max_protocol_fee_rate
        self.protocol_fee_rate = self._check_rate(protocol_fee_rate)

    @classmethod
    def from_settings(cls, owner: Address, settings: SwapSettings) -> 'Administration':
        return cls(
            owner,
            protocol_fee_rate=settings.DEFAULT_PROTOCOL_FEE_RATE,
            max_protocol_fee_rate=settings.MAX_PROTOCOL_FEE_RATE,
        )

    def _check_rate(self, rate: int) -> int:
        check_uint(rate, 'protocol_fee_rate')
        if rate > self.max_protocol_fee_rate:
            raise InvalidAmount(f'protocol fee rate must be at most {self.max_protocol_fee_rate}, got {rate}')
        return rate

    def is_owner(self, address: Address) -> bool:
        return address == self.owner

    def require_owner(self, ctx: Context, action: Optional[str] = None) -> None:
        if not self.is_owner(ctx.caller):
            self.log.info('unauthorized call', caller=ctx.caller.hex(), action=action)
            raise Unauthorized(f'only the owner can {action or "do this"}')

    def set_paused(self, ctx: Context, paused: bool) -> None:
        self.require_owner(ctx, 'pause the engine')
        self.paused = bool(paused)
        self.log.info('paused changed', paused=self.paused)

    def set_protocol_fee_rate(self, ctx: Context, rate: int) -> None:
        self.require_owner(ctx, 'change the protocol fee')
        self.protocol_fee_rate = self._check_rate(rate)
        self.log.info('protocol fee rate changed', rate=rate)

    def set_owner(self, ctx: Context, new_owner: Address) -> None:
        self.require_owner(ctx, 'transfer ownership')
        if not isinstance(new_owner, bytes) or not new_owner:
            raise TypeError('owner must be a non-empty bytes address')
        self.log.info('owner changed', old=self.owner.hex(), new=new_owner.hex())
        self.owner = new_owner
