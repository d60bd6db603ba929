"""
Account command implementation.

Fetches the on-chain state of an account (balance, nonce, code and
optionally storage slots) through the blocking provider, the same path
forked execution uses.
"""

from evmtrace.providers import BlockingProvider
from evmtrace.utils.colors import bold, info
from evmtrace.cli.common import handle_command_error, normalize_address, print_json


def account_command(args) -> int:
    """
    Execute the account command.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    try:
        address = normalize_address(args.address)
        slots = [int(slot, 0) for slot in args.slot or []]
    except ValueError as e:
        return handle_command_error(e, args.json)

    if args.rpc_url:
        provider = BlockingProvider.from_url(args.rpc_url)
    else:
        provider = BlockingProvider.from_env()

    with provider:
        block = args.block if args.block is not None else provider.get_block_number()
        state = {
            'address': address,
            'block': block,
            'balance': provider.get_balance(address, block),
            'nonce': provider.get_transaction_count(address, block),
            'code': '0x' + bytes(provider.get_code(address, block)).hex(),
            'storage': {
                hex(slot): '0x' + bytes(provider.get_storage_at(address, slot, block)).hex()
                for slot in slots
            },
        }

    if args.json:
        print_json(state)
    else:
        print(f"{bold('Account')} {info(address)} at block {state['block']}")
        print(f"  balance: {state['balance']} wei")
        print(f"  nonce:   {state['nonce']}")
        print(f"  code:    {(len(state['code']) - 2) // 2} bytes")
        for slot, value in state['storage'].items():
            print(f"  [{slot}] = {value}")
    return 0
