import pytest
from eth_abi import encode

from evmtrace.core import CallTraceArena, CallTraceNode, InstructionResult
from evmtrace.core.types import DecodedCall, DecodedReturn, RawCall, RawReturn
from evmtrace.decoding import Abi, CHEATCODE_ADDRESS, Function, PRECOMPILES, PRECOMPILE_LABEL
from evmtrace.utils.exceptions import NoCandidateFunctionsError

from conftest import ALICE, BOB, calldata, make_trace, revert_string


TRANSFER = Function.from_signature('transfer(address,uint256)')
# Stands in for a selector collision: same selector, different name and outputs.
XFER = Function.from_signature('xfer(address,uint256)', outputs=['bool'])

ECRECOVER = '0x0000000000000000000000000000000000000001'


def _node(trace) -> CallTraceNode:
    arena = CallTraceArena()
    arena.allocate(None, trace)
    return arena.root


def test_decodes_inputs_and_takes_output_from_first_candidate_that_has_one():
    node = _node(make_trace(
        data=calldata(TRANSFER, ['address', 'uint256'], [ALICE, 100]),
        output=encode(['bool'], [True]),
    ))

    node.decode_function([TRANSFER, XFER], {}, None)

    assert node.trace.data.name == 'transfer'
    assert node.trace.data.signature == 'transfer(address,uint256)'
    assert node.trace.data.args == [ALICE, '100']
    assert node.trace.output == DecodedReturn('true', encode(['bool'], [True]))


def test_inputs_use_labels():
    node = _node(make_trace(data=calldata(TRANSFER, ['address', 'uint256'], [ALICE, 7])))

    node.decode_function([TRANSFER], {ALICE: 'alice'}, None)

    assert node.trace.data.args == [f'alice ({ALICE})', '7']


def test_successful_output_without_output_types_stays_raw():
    output = encode(['uint256'], [42])
    node = _node(make_trace(
        data=calldata(TRANSFER, ['address', 'uint256'], [ALICE, 1]),
        output=output,
    ))

    node.decode_function([TRANSFER], {}, None)

    assert isinstance(node.trace.data, DecodedCall)
    assert node.trace.output == RawReturn(output)


def test_revert_reason_is_decoded_for_failed_calls():
    output = revert_string("Insufficient balance")
    node = _node(make_trace(
        data=calldata(TRANSFER, ['address', 'uint256'], [ALICE, 1]),
        output=output,
        success=False,
    ))

    node.decode_function([TRANSFER], {}, Abi())

    assert node.trace.output == DecodedReturn('"Insufficient balance"', output)


def test_custom_error_is_decoded_with_known_errors(erc20_abi, transfer_fn):
    error = erc20_abi.errors[0]
    output = error.selector + encode(['uint256', 'uint256'], [1, 2])
    node = _node(make_trace(
        data=calldata(transfer_fn, ['address', 'uint256'], [BOB, 2]),
        output=output,
        success=False,
    ))

    node.decode_function([transfer_fn], {}, erc20_abi)

    assert node.trace.output.value == '"InsufficientBalance(1, 2)"'


def test_out_of_gas_without_data():
    node = _node(make_trace(
        data=calldata(TRANSFER, ['address', 'uint256'], [ALICE, 1]),
        success=False,
        status=InstructionResult.OUT_OF_GAS,
    ))

    node.decode_function([TRANSFER], {}, None)

    assert node.trace.output.value == '"EvmError: OutOfGas"'


def test_short_calldata_yields_no_arguments():
    node = _node(make_trace(data=b'\xa9\x05'))

    node.decode_function([TRANSFER], {}, None)

    assert node.trace.data == DecodedCall('transfer', 'transfer(address,uint256)', [], b'\xa9\x05')
    assert isinstance(node.trace.output, RawReturn)


def test_malformed_arguments_yield_no_arguments():
    data = TRANSFER.selector + b'\x00' * 10
    node = _node(make_trace(data=data))

    node.decode_function([TRANSFER], {}, None)

    assert node.trace.data.args == []
    assert node.trace.data.to_raw() == data


def test_decoding_twice_is_a_no_op():
    node = _node(make_trace(
        data=calldata(TRANSFER, ['address', 'uint256'], [ALICE, 100]),
        output=encode(['bool'], [True]),
    ))
    node.decode_function([TRANSFER, XFER], {}, None)
    first = (node.trace.data, node.trace.output)

    node.decode_function([XFER], {ALICE: 'alice'}, None)

    assert (node.trace.data, node.trace.output) == first


def test_output_is_not_decoded_when_call_data_is_already_decoded():
    output = encode(['bool'], [True])
    node = _node(make_trace(output=output))
    node.trace.data = DecodedCall('transfer', 'transfer(address,uint256)', [], b'')

    node.decode_function([XFER], {}, None)

    assert node.trace.output == RawReturn(output)


def test_no_candidates_is_an_error():
    node = _node(make_trace(data=TRANSFER.selector))

    with pytest.raises(NoCandidateFunctionsError):
        node.decode_function([], {}, None)
    with pytest.raises(ValueError):
        node.decode_function([], {}, None)
    assert isinstance(node.trace.data, RawCall)


# ---------------------------------------------------------------------------
# Cheatcodes
# ---------------------------------------------------------------------------

def _cheatcode(signature: str, outputs=None) -> Function:
    return Function.from_signature(signature, outputs=outputs)


def test_private_key_arguments_are_redacted():
    addr = _cheatcode('addr(uint256)', ['address'])
    node = _node(make_trace(
        address=CHEATCODE_ADDRESS,
        data=calldata(addr, ['uint256'], [0xabc]),
    ))

    node.decode_function([addr], {}, None)

    assert node.trace.data.args == ['<pk>']


def test_sign_redacts_key_and_keeps_digest():
    sign = _cheatcode('sign(uint256,bytes32)', ['uint8', 'bytes32', 'bytes32'])
    digest = b'\x42' * 32
    node = _node(make_trace(
        address=CHEATCODE_ADDRESS,
        data=calldata(sign, ['uint256', 'bytes32'], [1, digest]),
    ))

    node.decode_function([sign], {}, None)

    assert node.trace.data.args == ['<pk>', '0x' + digest.hex()]


def test_expect_revert_shows_expected_reason():
    expect_revert = _cheatcode('expectRevert(bytes)')
    node = _node(make_trace(
        address=CHEATCODE_ADDRESS,
        data=calldata(expect_revert, ['bytes'], [revert_string("nope")]),
    ))

    node.decode_function([expect_revert], {}, None)

    assert node.trace.data.args == ['nope']


def test_other_cheatcodes_decode_generically():
    warp = _cheatcode('warp(uint256)')
    node = _node(make_trace(
        address=CHEATCODE_ADDRESS,
        data=calldata(warp, ['uint256'], [1700000000]),
    ))

    node.decode_function([warp], {}, None)

    assert node.trace.data.args == ['1700000000']


def test_cheatcode_rendering_only_applies_at_cheatcode_address():
    addr = _cheatcode('addr(uint256)', ['address'])
    node = _node(make_trace(data=calldata(addr, ['uint256'], [5])))

    node.decode_function([addr], {}, None)

    assert node.trace.data.args == ['5']


# ---------------------------------------------------------------------------
# Precompiles
# ---------------------------------------------------------------------------

def test_precompile_decodes_well_formed_input():
    ecrecover = PRECOMPILES[ECRECOVER]
    digest = b'\x11' * 32
    output = encode(['address'], [ALICE])
    node = _node(make_trace(
        address=ECRECOVER,
        data=encode(['bytes32', 'uint256', 'uint256', 'uint256'], [digest, 27, 1, 2]),
        output=output,
    ))

    node.decode_precompile(ecrecover, {ALICE: 'alice'})

    assert node.trace.label == PRECOMPILE_LABEL
    assert node.trace.data.name == 'ecrecover'
    assert node.trace.data.args == ['0x' + digest.hex(), '27', '1', '2']
    assert node.trace.output == DecodedReturn(f'alice ({ALICE})', output)


def test_precompile_falls_back_to_hex():
    ecrecover = PRECOMPILES[ECRECOVER]
    node = _node(make_trace(address=ECRECOVER, data=b'\x01\x02\x03', output=b'\xff'))

    node.decode_precompile(ecrecover, {})

    assert node.trace.label == PRECOMPILE_LABEL
    assert node.trace.data.args == ['010203']
    assert node.trace.output == DecodedReturn('ff', b'\xff')
