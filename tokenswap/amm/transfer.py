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

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Iterable, NamedTuple

from structlog import get_logger

from tokenswap.exception import InvalidAmount, TokenSwapError, TransferFailed
from tokenswap.safemath import check_uint
from tokenswap.types import Address, Amount, TokenUid

logger = get_logger()


class TransferLeg(NamedTuple):
    """A single movement of `amount` units of `token` from `sender` to `recipient`."""
    token: TokenUid
    amount: Amount
    sender: Address
    recipient: Address

    def reversed(self) -> 'TransferLeg':
        return TransferLeg(self.token, self.amount, self.recipient, self.sender)

    def to_json(self) -> dict[str, object]:
        return {
            'token': self.token.hex(),
            'amount': self.amount,
            'sender': self.sender.hex(),
            'recipient': self.recipient.hex(),
        }


class AssetLedger(ABC):
    """External fungible-asset ledger holding the balances of every holder, the engine custody included."""

    @abstractmethod
    def transfer(self, token: TokenUid, amount: Amount, sender: Address, recipient: Address) -> bool:
        """Move `amount` of `token` from `sender` to `recipient`.

        Return False, without moving anything, if the ledger refuses the transfer.
        """
        raise NotImplementedError


class MemoryAssetLedger(AssetLedger):
    """In-memory ledger, used by the tests and the simulator."""

    def __init__(self) -> None:
        self._balances: defaultdict[tuple[TokenUid, Address], Amount] = defaultdict(int)
        # Number of upcoming transfers to accept before refusing one. None means never refuse.
        self._fail_after: int | None = None
        self.transfer_count = 0

    def mint(self, token: TokenUid, holder: Address, amount: Amount) -> None:
        check_uint(amount, 'amount')
        self._balances[(token, holder)] = check_uint(self._balances[(token, holder)] + amount, 'balance')

    def balance_of(self, token: TokenUid, holder: Address) -> Amount:
        return self._balances.get((token, holder), 0)

    def get_all_balances(self) -> dict[tuple[TokenUid, Address], Amount]:
        return {key: value for key, value in self._balances.items() if value}

    def fail_after(self, transfers: int | None) -> None:
        """Refuse the transfer that comes after the next `transfers` successful ones. Pass None to stop failing."""
        self._fail_after = transfers

    def transfer(self, token: TokenUid, amount: Amount, sender: Address, recipient: Address) -> bool:
        if self._fail_after is not None:
            if self._fail_after == 0:
                self._fail_after = None
                return False
            self._fail_after -= 1
        if amount < 0 or self.balance_of(token, sender) < amount:
            return False
        self._balances[(token, sender)] -= amount
        self._balances[(token, recipient)] += amount
        self.transfer_count += 1
        return True


class AssetTransferAdapter:
    """The only way the engine moves assets.

    Every custody movement goes through this adapter so a failing ledger can be turned into a TransferFailed error
    and the legs that already went through can be reversed.
    """

    def __init__(self, ledger: AssetLedger) -> None:
        self.ledger = ledger
        self.log = logger.new()

    def transfer(self, leg: TransferLeg) -> None:
        """Execute a single leg, raising TransferFailed if the ledger refuses it or errors out."""
        check_uint(leg.amount, 'amount')
        if leg.amount == 0:
            raise InvalidAmount('cannot transfer a zero amount')
        if not self._ledger_transfer(leg):
            self.log.warn('transfer refused', **leg.to_json())
            raise TransferFailed(f'ledger refused to transfer {leg.amount} of {leg.token.hex()}')

    def _ledger_transfer(self, leg: TransferLeg) -> bool:
        try:
            return self.ledger.transfer(leg.token, leg.amount, leg.sender, leg.recipient)
        except TokenSwapError:
            raise
        except Exception as e:
            self.log.warn('ledger error', error=repr(e), **leg.to_json())
            raise TransferFailed(f'ledger failed to transfer {leg.amount} of {leg.token.hex()}') from e

    def transfer_all(self, legs: Iterable[TransferLeg]) -> None:
        """Execute every leg in order. Zero amount legs are skipped.

        If a leg fails, the legs that succeeded are reversed in the opposite order and TransferFailed is raised.
        """
        done: list[TransferLeg] = []
        for leg in legs:
            if leg.amount == 0:
                continue
            try:
                self.transfer(leg)
            except Exception:
                self._compensate(done)
                raise
            done.append(leg)

    def _compensate(self, done: list[TransferLeg]) -> None:
        for leg in reversed(done):
            reverse = leg.reversed()
            try:
                if not self._ledger_transfer(reverse):
                    raise TransferFailed(f'could not reverse transfer of {leg.amount} of {leg.token.hex()}')
            except TokenSwapError:
                # Nothing else can be done here, the ledger is left inconsistent and this must be investigated.
                self.log.error('failed to reverse transfer', **reverse.to_json())
                raise
            self.log.info('transfer reversed', **reverse.to_json())
