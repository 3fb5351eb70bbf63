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

"""
This module contains every error the swap engine raises.

Each error carries the numeric `code` used by the on-chain contracts this engine mirrors, and an `ErrorKind` which
tells the caller whether resubmitting can help:

- ADJUSTABLE: the call would succeed with different parameters (slippage floors, amounts, minimum liquidity).
- UNAVAILABLE: the call cannot succeed right now regardless of parameters (pool missing, paused, ledger failure).
- CALLER_ERROR: the call is malformed (same asset on both sides, zero amounts, not the owner).
"""

from enum import Enum


class ErrorKind(Enum):
    ADJUSTABLE = 'adjustable'
    UNAVAILABLE = 'unavailable'
    CALLER_ERROR = 'caller_error'


class TokenSwapError(Exception):
    """Base class for exceptions in tokenswap."""
    code: int = 5000
    kind: ErrorKind = ErrorKind.CALLER_ERROR


class Unauthorized(TokenSwapError):
    """Raised when an administrative action is called by someone other than the owner."""
    code = 5001


class PoolNotFound(TokenSwapError):
    """Raised when trying to use a pool that doesn't exist."""
    code = 5002
    kind = ErrorKind.UNAVAILABLE


class PoolExists(TokenSwapError):
    """Raised when trying to create a pool that already exists."""
    code = 5003


class InvalidAmount(TokenSwapError):
    """Raised on zero or malformed quantities."""
    code = 5004


class InsufficientLiquidity(TokenSwapError):
    """Raised when the reserves cannot price the requested trade."""
    code = 5005
    kind = ErrorKind.ADJUSTABLE


class InsufficientShares(TokenSwapError):
    """Raised when a position holds fewer shares than requested."""
    code = 5006


class SlippageExceeded(TokenSwapError):
    """Raised when the resolved amounts fall outside the caller's slippage floor."""
    code = 5007
    kind = ErrorKind.ADJUSTABLE


class TransferFailed(TokenSwapError):
    """Raised when the asset ledger refuses a transfer."""
    code = 5008
    kind = ErrorKind.UNAVAILABLE


class ReentrantCall(TokenSwapError):
    """Raised when a write operation is called while another one is still executing."""
    code = 5009


class SameAsset(TokenSwapError):
    """Raised when both sides of a pair are the same asset."""
    code = 5010


class PoolPaused(TokenSwapError):
    """Raised when the engine is paused or the pool is inactive."""
    code = 5011
    kind = ErrorKind.UNAVAILABLE


class MinimumLiquidity(TokenSwapError):
    """Raised when a deposit is too small to issue any share."""
    code = 5012
    kind = ErrorKind.ADJUSTABLE


class SafeMathError(TokenSwapError):
    """Base class for checked arithmetic failures."""
    pass


class ArithmeticUnderflow(SafeMathError):
    code = 1003


class DivisionByZero(SafeMathError):
    code = 1004


class ArithmeticOverflow(SafeMathError):
    code = 1005
