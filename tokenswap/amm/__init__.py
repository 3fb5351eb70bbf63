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

from tokenswap.amm.admin import Administration
from tokenswap.amm.context import Context
from tokenswap.amm.engine import TokenSwap
from tokenswap.amm.models import ContractStats, LiquidityPosition, LiquidityResult, Pool, SwapRecord, SwapResult
from tokenswap.amm.pair_key import PairKey, canonical_pair
from tokenswap.amm.transfer import AssetLedger, AssetTransferAdapter, MemoryAssetLedger, TransferLeg

__all__ = [
    'Administration',
    'AssetLedger',
    'AssetTransferAdapter',
    'Context',
    'ContractStats',
    'LiquidityPosition',
    'LiquidityResult',
    'MemoryAssetLedger',
    'PairKey',
    'Pool',
    'SwapRecord',
    'SwapResult',
    'TokenSwap',
    'TransferLeg',
    'canonical_pair',
]
