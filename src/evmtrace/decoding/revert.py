"""
Revert reason decoding.

Turns the return data of a failed call into a human readable reason:
``Error(string)``, ``Panic(uint256)``, cheatcode ``expectRevert`` payloads,
custom errors from a known ABI, or plain strings.
"""

from typing import Optional, Sequence

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from evmtrace.core.types import InstructionResult
from evmtrace.utils.exceptions import AbiDecodeError, RevertDecodeError
from evmtrace.utils.logging import get_logger, log_trace

from .abi import SELECTOR_LEN, Abi, AbiError
from .labels import format_token

logger = get_logger('decoding.revert')

# bytes4(keccak256("Error(string)"))
ERROR_STRING_SELECTOR = bytes.fromhex('08c379a0')
# bytes4(keccak256("Panic(uint256)"))
PANIC_SELECTOR = bytes.fromhex('4e487b71')
# bytes4(keccak256("expectRevert(bytes)"))
EXPECT_REVERT_BYTES_SELECTOR = bytes.fromhex('f28dceb3')
# bytes4(keccak256("expectRevert(bytes4)"))
EXPECT_REVERT_BYTES4_SELECTOR = bytes.fromhex('c31eb0e0')

PANIC_REASONS = {
    0x01: "Assertion violated",
    0x11: "Arithmetic over/underflow",
    0x12: "Division or modulo by 0",
    0x21: "Conversion into non-existent enum type",
    0x22: "Incorrectly encoded storage byte array",
    0x31: "`.pop()` on empty array",
    0x32: "Index out of bounds",
    0x41: "Memory too large",
    0x51: "Uninitialized function pointer",
}

# Statuses for which an empty payload is an ordinary revert, not a VM error.
_NON_ERROR_STATUSES = (
    InstructionResult.REVERT,
    InstructionResult.CONTINUE,
    InstructionResult.STOP,
    InstructionResult.RETURN,
)


def decode_revert(
    data: bytes,
    errors: Optional[Abi] = None,
    status: Optional[InstructionResult] = None,
) -> str:
    """
    Decode a revert payload into a reason string.

    Raises:
        RevertDecodeError: if the payload is not a recognisable revert reason
    """
    data = bytes(data)

    if len(data) < SELECTOR_LEN:
        if status is not None and status not in _NON_ERROR_STATUSES:
            return f"EvmError: {status.display_name}"
        raise RevertDecodeError("Not enough error data to decode", data=data)

    selector, payload = data[:SELECTOR_LEN], data[SELECTOR_LEN:]

    if selector == PANIC_SELECTOR:
        code = int.from_bytes(payload[:32], 'big') if payload else None
        return PANIC_REASONS.get(code, "Unknown panic")

    if selector == ERROR_STRING_SELECTOR:
        reason = _decode_string(payload)
        if reason is None:
            raise RevertDecodeError("Bad string decode", data=data)
        return reason

    if selector == EXPECT_REVERT_BYTES_SELECTOR:
        return _decode_expect_revert_bytes(payload, errors, data)

    if selector == EXPECT_REVERT_BYTES4_SELECTOR:
        if len(payload) == 32:
            try:
                return decode_revert(payload[:SELECTOR_LEN], errors)
            except RevertDecodeError:
                pass
        raise RevertDecodeError("Unknown error selector", data=data)

    if errors is not None:
        decoded = _decode_custom_error(selector, payload, errors.errors)
        if decoded is not None:
            return decoded

    # Unknown selector: optimistically try an ABI encoded string, then raw text.
    reason = _decode_string(data)
    if reason is not None:
        return reason
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        raise RevertDecodeError("Non-native error and not string", data=data)


def _decode_expect_revert_bytes(payload: bytes, errors: Optional[Abi], data: bytes) -> str:
    # abi.encode(bytes): offset word, length word, then the bytes themselves
    if len(payload) > 64:
        length = int.from_bytes(payload[32:64], 'big')
        if len(payload) >= 64 + length:
            inner = payload[64:64 + length]
            try:
                return decode_revert(inner, errors)
            except RevertDecodeError:
                pass
            try:
                return inner.decode('utf-8')
            except UnicodeDecodeError:
                pass
    raise RevertDecodeError("Non-native error and not string", data=data)


def _decode_custom_error(
    selector: bytes, payload: bytes, candidates: Sequence[AbiError]
) -> Optional[str]:
    for abi_error in candidates:
        if abi_error.selector != selector:
            continue
        try:
            tokens = abi_error.decode(payload)
        except AbiDecodeError as e:
            # another error may share the selector; keep looking
            log_trace(logger, "custom error %s did not decode: %s", abi_error.signature, e)
            continue
        return f"{abi_error.name}({', '.join(format_token(t) for t in tokens)})"
    return None


def _decode_string(payload: bytes) -> Optional[str]:
    try:
        (reason,) = abi_decode(['string'], payload)
    except (DecodingError, ValueError, OverflowError):
        return None
    return reason
