import pytest
from eth_abi import encode

from evmtrace.core import InstructionResult
from evmtrace.decoding import Abi, decode_revert
from evmtrace.utils.exceptions import RevertDecodeError

from conftest import ERC20_ABI, revert_string

PANIC = bytes.fromhex('4e487b71')
EXPECT_REVERT_BYTES4 = bytes.fromhex('c31eb0e0')


def test_error_string():
    assert decode_revert(revert_string("Insufficient balance")) == "Insufficient balance"


@pytest.mark.parametrize("code, reason", [
    (0x01, "Assertion violated"),
    (0x11, "Arithmetic over/underflow"),
    (0x12, "Division or modulo by 0"),
    (0x32, "Index out of bounds"),
    (0x99, "Unknown panic"),
])
def test_panic(code, reason):
    assert decode_revert(PANIC + encode(['uint256'], [code])) == reason


def test_custom_error():
    errors = Abi.from_json(ERC20_ABI)
    data = errors.errors[0].selector + encode(['uint256', 'uint256'], [10, 20])

    assert decode_revert(data, errors) == "InsufficientBalance(10, 20)"


def test_unknown_custom_error_without_text_fails():
    with pytest.raises(RevertDecodeError):
        decode_revert(b'\xde\xad\xbe\xef' + b'\xff' * 5)


def test_plain_text_fallback():
    assert decode_revert(b'hello world') == 'hello world'


def test_expect_revert_with_bytes4():
    errors = Abi.from_json([{"type": "error", "name": "Unauthorized", "inputs": []}])
    data = EXPECT_REVERT_BYTES4 + errors.errors[0].selector + b'\x00' * 28

    assert decode_revert(data, errors) == "Unauthorized()"


def test_expect_revert_with_unknown_bytes4():
    data = EXPECT_REVERT_BYTES4 + b'\xff\xfe\xfd\xfc' + b'\x00' * 28

    with pytest.raises(RevertDecodeError):
        decode_revert(data)


@pytest.mark.parametrize("status", [
    InstructionResult.OUT_OF_GAS,
    InstructionResult.INVALID_OPCODE,
    InstructionResult.STACK_OVERFLOW,
])
def test_short_data_with_vm_error_status(status):
    assert decode_revert(b'', status=status) == f"EvmError: {status.value}"


@pytest.mark.parametrize("status", [None, InstructionResult.REVERT, InstructionResult.STOP])
def test_short_data_without_vm_error_fails(status):
    with pytest.raises(RevertDecodeError):
        decode_revert(b'\x01\x02', status=status)


def test_bad_error_string_fails():
    with pytest.raises(RevertDecodeError):
        decode_revert(bytes.fromhex('08c379a0') + b'\x00' * 7)
