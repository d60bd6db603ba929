import pytest
from eth_abi import encode
from eth_utils import to_checksum_address

from evmtrace.core import CallKind, CallTrace, CallTraceArena, InstructionResult
from evmtrace.core.types import RawCall, RawLog, RawReturn
from evmtrace.decoding import Abi, Function

ALICE = to_checksum_address('0x' + '11' * 20)
BOB = to_checksum_address('0x' + '22' * 20)
TOKEN = to_checksum_address('0x' + 'aa' * 20)
CALLER = to_checksum_address('0x' + 'cc' * 20)

ERC20_ABI = [
    {
        "type": "function",
        "name": "transfer",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "error",
        "name": "InsufficientBalance",
        "inputs": [
            {"name": "available", "type": "uint256"},
            {"name": "required", "type": "uint256"},
        ],
    },
]


def calldata(func: Function, types, values) -> bytes:
    return func.selector + encode(types, values)


def revert_string(reason: str) -> bytes:
    return bytes.fromhex('08c379a0') + encode(['string'], [reason])


def make_trace(
    data: bytes = b'',
    output: bytes = b'',
    success: bool = True,
    depth: int = 0,
    address: str = TOKEN,
    kind: CallKind = CallKind.CALL,
    status: InstructionResult = None,
    **kwargs,
) -> CallTrace:
    if status is None:
        status = InstructionResult.RETURN if success else InstructionResult.REVERT
    return CallTrace(
        depth=depth,
        success=success,
        caller=kwargs.pop('caller', CALLER),
        address=address,
        kind=kind,
        data=RawCall(data),
        output=RawReturn(output),
        status=status,
        **kwargs,
    )


def transfer_log(sender: str, receiver: str, amount: int, event) -> RawLog:
    return RawLog(
        topics=[event.topic, encode(['address'], [sender]), encode(['address'], [receiver])],
        data=encode(['uint256'], [amount]),
    )


@pytest.fixture
def erc20_abi():
    return Abi.from_json(ERC20_ABI)


@pytest.fixture
def transfer_fn(erc20_abi):
    return erc20_abi.functions[0]


@pytest.fixture
def token_arena(erc20_abi, transfer_fn):
    """A root call into a token that transfers and calls balanceOf on itself."""
    transfer_event = erc20_abi.events[0]
    balance_of = erc20_abi.functions[1]

    arena = CallTraceArena()
    root = arena.allocate(None, make_trace(
        data=calldata(transfer_fn, ['address', 'uint256'], [BOB, 100]),
        output=encode(['bool'], [True]),
        gas_cost=51000,
    ))
    arena.add_log(root, transfer_log(ALICE, BOB, 100, transfer_event))
    arena.allocate(root, make_trace(
        data=calldata(balance_of, ['address'], [BOB]),
        output=encode(['uint256'], [100]),
        depth=1,
        caller=TOKEN,
        kind=CallKind.STATICCALL,
        gas_cost=2600,
    ))
    return arena
