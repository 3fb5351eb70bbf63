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

import json
from argparse import ArgumentParser, Namespace
from typing import Any

from tokenswap.exception import TokenSwapError


def create_parser() -> ArgumentParser:
    from tokenswap.cli.util import create_parser
    parser = create_parser()
    parser.add_argument('--reserve-in', type=int, required=True, help='Reserve of the token being sold')
    parser.add_argument('--reserve-out', type=int, required=True, help='Reserve of the token being bought')
    parser.add_argument('--fee-bps', type=int, default=None, help='Trading fee in basis points (default: settings)')
    amount = parser.add_mutually_exclusive_group(required=True)
    amount.add_argument('--amount-in', type=int, help='Exact amount sold')
    amount.add_argument('--amount-out', type=int, help='Exact amount bought')
    parser.add_argument('--indent', type=int, default=None, help='Number of spaces to use for indentation')
    return parser


def execute(args: Namespace) -> dict[str, Any]:
    from tokenswap.amm.pricing import get_amount_in, get_amount_out, price_impact_bps, swap_fee
    from tokenswap.conf.get_settings import get_global_settings

    fee_bps = args.fee_bps if args.fee_bps is not None else get_global_settings().FEE_BPS
    if args.amount_in is not None:
        amount_in = args.amount_in
        amount_out = get_amount_out(amount_in, args.reserve_in, args.reserve_out, fee_bps)
    else:
        amount_out = args.amount_out
        amount_in = get_amount_in(amount_out, args.reserve_in, args.reserve_out, fee_bps)
    return {
        'amount_in': amount_in,
        'amount_out': amount_out,
        'fee_paid': swap_fee(amount_in, fee_bps),
        'fee_bps': fee_bps,
        'price_impact_bps': price_impact_bps(amount_in, amount_out, args.reserve_in, args.reserve_out),
    }


def main() -> int:
    parser = create_parser()
    args = parser.parse_args()
    try:
        result = execute(args)
    except TokenSwapError as e:
        print(json.dumps({'error': type(e).__name__, 'code': e.code, 'message': str(e)}, indent=args.indent))
        return 1
    print(json.dumps(result, indent=args.indent))
    return 0
