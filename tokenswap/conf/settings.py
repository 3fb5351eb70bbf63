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

from pathlib import Path
from typing import Any, Union

from pydantic import field_validator, model_validator

from tokenswap.utils.pydantic import BaseModel
from tokenswap.utils.yaml import dict_from_extended_yaml

# Denominator of every fee expressed in basis points.
BPS_DENOMINATOR: int = 10_000

# Denominator of the protocol fee rate, which is a percentage of the trading fee.
PERCENT_DENOMINATOR: int = 100


def parse_hex_str(hex_str: Union[str, bytes]) -> bytes:
    """Parse a hex string into bytes, leaving bytes untouched."""
    if isinstance(hex_str, str):
        return bytes.fromhex(hex_str.removeprefix('0x'))

    if not isinstance(hex_str, bytes):
        raise TypeError(f'expected \'str\' or \'bytes\', got {hex_str}')

    return hex_str


class SwapSettings(BaseModel):
    # Name of the deployment: "mainnet", "testnet", "unittests", ...
    NETWORK_NAME: str

    # Trading fee charged on the input side of every swap, in basis points. 30 is 0.3%.
    FEE_BPS: int = 30

    # Upper bound accepted for FEE_BPS.
    MAX_FEE_BPS: int = 1_000

    # Shares permanently locked on pool creation so a pool can never be drained back to zero shares.
    MINIMUM_LIQUIDITY: int = 1_000

    # Smallest accepted product of the initial deposits of a pool.
    MIN_LIQUIDITY_PRODUCT: int = 10**8

    # Share of the trading fee (in percent) kept by the protocol instead of the liquidity providers.
    DEFAULT_PROTOCOL_FEE_RATE: int = 0
    MAX_PROTOCOL_FEE_RATE: int = 50

    # Account holding the custodied reserves on the asset ledger.
    CUSTODY_ADDRESS: bytes = bytes.fromhex('00' * 31 + '01')

    # Holder credited with the locked MINIMUM_LIQUIDITY shares. Nobody can sign for it.
    LOCKED_LIQUIDITY_HOLDER: bytes = bytes(32)

    parse_hex_fields = field_validator('CUSTODY_ADDRESS', 'LOCKED_LIQUIDITY_HOLDER', mode='before')(parse_hex_str)

    @field_validator('FEE_BPS', 'MAX_FEE_BPS', 'MINIMUM_LIQUIDITY', 'MIN_LIQUIDITY_PRODUCT',
                     'DEFAULT_PROTOCOL_FEE_RATE', 'MAX_PROTOCOL_FEE_RATE')
    @classmethod
    def check_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError('must not be negative')
        return value

    @model_validator(mode='after')
    def check_bounds(self) -> 'SwapSettings':
        if self.MAX_FEE_BPS >= BPS_DENOMINATOR:
            raise ValueError(f'MAX_FEE_BPS must be below {BPS_DENOMINATOR}')
        if self.FEE_BPS > self.MAX_FEE_BPS:
            raise ValueError(f'FEE_BPS must not be greater than MAX_FEE_BPS={self.MAX_FEE_BPS}')
        if self.MAX_PROTOCOL_FEE_RATE > PERCENT_DENOMINATOR:
            raise ValueError(f'MAX_PROTOCOL_FEE_RATE must not exceed {PERCENT_DENOMINATOR}')
        if self.DEFAULT_PROTOCOL_FEE_RATE > self.MAX_PROTOCOL_FEE_RATE:
            raise ValueError('DEFAULT_PROTOCOL_FEE_RATE must not be greater than MAX_PROTOCOL_FEE_RATE')
        if self.CUSTODY_ADDRESS == self.LOCKED_LIQUIDITY_HOLDER:
            raise ValueError('CUSTODY_ADDRESS and LOCKED_LIQUIDITY_HOLDER must differ')
        return self

    @classmethod
    def from_yaml(cls, *, filepath: Union[Path, str]) -> 'SwapSettings':
        """Takes a filepath to a yaml file and returns a validated SwapSettings instance."""
        settings_dict: dict[str, Any] = dict_from_extended_yaml(filepath=filepath)
        return cls.model_validate(settings_dict)
