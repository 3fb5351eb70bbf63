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
Run a scenario against an engine backed by an in-memory ledger.

A scenario is a YAML file like::

    owner: 'aa'
    mints:
      - {token: '01', holder: 'bb', amount: 10000000000}
      - {token: '02', holder: 'bb', amount: 10000000000}
    steps:
      - op: create_pool
        caller: 'bb'
        args: {token_x: '01', token_y: '02', amount_x: 1000000000, amount_y: 1000000000}
      - op: swap
        caller: 'bb'
        args: {token_in: '01', token_out: '02', amount_in: 1}
        expect_error: InsufficientLiquidity

Token and address arguments are hex encoded. A step listing `expect_error` must fail with that error, any other
failure stops the simulation.
"""

import json
from argparse import ArgumentParser, Namespace
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from structlog import get_logger

from tokenswap import exception
from tokenswap.amm.admin import Administration
from tokenswap.amm.context import Context
from tokenswap.amm.engine import TokenSwap
from tokenswap.amm.transfer import MemoryAssetLedger
from tokenswap.conf.settings import SwapSettings, parse_hex_str
from tokenswap.utils.pydantic import BaseModel
from tokenswap.utils.yaml import dict_from_yaml

logger = get_logger()

# Arguments holding a token uid or an address.
_BYTES_ARGS = frozenset({'token_x', 'token_y', 'token_in', 'token_out', 'token', 'recipient', 'new_owner'})

Operation = Literal[
    'create_pool',
    'add_liquidity',
    'remove_liquidity',
    'swap',
    'swap_exact_tokens_for_tokens',
    'swap_tokens_for_exact_tokens',
    'set_paused',
    'set_protocol_fee_rate',
    'set_owner',
    'set_pool_active',
    'withdraw_protocol_fees',
]


class Mint(BaseModel):
    token: bytes
    holder: bytes
    amount: int = Field(ge=0)

    parse_hex_fields = field_validator('token', 'holder', mode='before')(parse_hex_str)


class Step(BaseModel):
    op: Operation
    caller: bytes
    block_height: Optional[int] = None
    args: dict[str, Any] = Field(default_factory=dict)
    expect_error: Optional[str] = None

    parse_hex_fields = field_validator('caller', mode='before')(parse_hex_str)

    @field_validator('expect_error')
    @classmethod
    def check_error_name(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            error_class = getattr(exception, value, None)
            if not (isinstance(error_class, type) and issubclass(error_class, exception.TokenSwapError)):
                raise ValueError(f'unknown error: {value}')
        return value

    def get_call_args(self) -> dict[str, Any]:
        return {
            key: parse_hex_str(value) if key in _BYTES_ARGS else value
            for key, value in self.args.items()
        }


class Scenario(BaseModel):
    owner: bytes
    protocol_fee_rate: Optional[int] = None
    mints: list[Mint] = Field(default_factory=list)
    steps: list[Step]

    parse_hex_fields = field_validator('owner', mode='before')(parse_hex_str)


class SimulationFailed(Exception):
    """Raised when a step does not behave as the scenario expects."""


def _to_json(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, tuple) and hasattr(value, '_asdict'):
        return {k: _to_json(v) for k, v in value._asdict().items()}
    return value


def run_scenario(scenario: Scenario, settings: SwapSettings) -> dict[str, Any]:
    """Execute every step of `scenario` and return a report of the results and the final state."""
    log = logger.new()
    ledger = MemoryAssetLedger()
    admin = Administration.from_settings(scenario.owner, settings)
    engine = TokenSwap(ledger=ledger, admin=admin, settings=settings)
    if scenario.protocol_fee_rate is not None:
        engine.set_protocol_fee_rate(Context(scenario.owner, 0), scenario.protocol_fee_rate)

    for mint in scenario.mints:
        ledger.mint(mint.token, mint.holder, mint.amount)

    results: list[dict[str, Any]] = []
    for index, step in enumerate(scenario.steps):
        ctx = Context(step.caller, step.block_height if step.block_height is not None else index)
        method = getattr(engine, step.op)
        try:
            value = method(ctx, **step.get_call_args())
        except exception.TokenSwapError as e:
            if type(e).__name__ != step.expect_error:
                raise SimulationFailed(f'step {index} ({step.op}) failed with {type(e).__name__}: {e}') from e
            log.info('step failed as expected', step=index, op=step.op, error=type(e).__name__)
            results.append({'step': index, 'op': step.op, 'error': type(e).__name__, 'code': e.code})
            continue
        if step.expect_error is not None:
            raise SimulationFailed(f'step {index} ({step.op}) should have failed with {step.expect_error}')
        log.info('step executed', step=index, op=step.op)
        results.append({'step': index, 'op': step.op, 'result': _to_json(value)})

    return {
        'results': results,
        'stats': engine.get_contract_stats().to_json(),
        'pools': [pool.to_json() for pool in engine.get_pools()],
    }


def create_parser() -> ArgumentParser:
    from tokenswap.cli.util import create_parser
    parser = create_parser()
    parser.add_argument('scenario', help='Path to the scenario YAML file')
    parser.add_argument('--indent', type=int, default=None, help='Number of spaces to use for indentation')
    return parser


def execute(args: Namespace) -> dict[str, Any]:
    from tokenswap.conf.get_settings import get_global_settings
    scenario = Scenario.model_validate(dict_from_yaml(filepath=args.scenario))
    return run_scenario(scenario, get_global_settings())


def main() -> int:
    parser = create_parser()
    args = parser.parse_args()
    try:
        report = execute(args)
    except SimulationFailed as e:
        logger.error('simulation failed', reason=str(e))
        return 1
    print(json.dumps(report, indent=args.indent))
    return 0
