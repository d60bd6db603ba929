from eth_abi import encode

from evmtrace.core import CallTraceArena, CallTraceDecoder
from evmtrace.core.types import DecodedCall, DecodedLog, RawCall, RawLog, RawReturn
from evmtrace.decoding import CHEATCODE_ADDRESS, PRECOMPILE_LABEL, Function, SignatureLookup

from conftest import ALICE, BOB, TOKEN, calldata, make_trace


class StaticLookup(SignatureLookup):
    """Signature lookup answering from a fixed table instead of the network."""

    def __init__(self, signatures):
        super().__init__()
        self.signatures = signatures
        self.queries = []

    def lookup_signature(self, selector):
        self.queries.append(selector)
        return self.signatures.get(selector)


def test_decode_arena(token_arena, erc20_abi):
    decoder = CallTraceDecoder(labels={TOKEN: 'Token', ALICE: 'alice'})
    decoder.add_abi(erc20_abi)

    assert decoder.decode(token_arena) is token_arena

    root = token_arena.root
    assert root.trace.label == 'Token'
    assert root.trace.data.args == [BOB, '100']
    assert root.trace.output.value == 'true'
    assert root.logs == [DecodedLog(
        'Transfer',
        [('from', f'alice ({ALICE})'), ('to', BOB), ('value', '100')],
        root.logs[0].raw,
    )]
    assert isinstance(root.logs[0].raw, RawLog)

    child = token_arena[1]
    assert child.trace.data.name == 'balanceOf'
    assert child.trace.output.value == '100'


def test_unknown_selector_and_log_stay_raw(token_arena):
    decoder = CallTraceDecoder()
    decoder.decode(token_arena)

    assert isinstance(token_arena.root.trace.data, RawCall)
    assert isinstance(token_arena.root.logs[0], RawLog)


def test_cheatcode_address_is_labeled_and_decoded():
    warp = Function.from_signature('warp(uint256)')
    arena = CallTraceArena()
    arena.allocate(None, make_trace(address=CHEATCODE_ADDRESS, data=calldata(warp, ['uint256'], [1])))

    CallTraceDecoder().decode(arena)

    assert arena.root.trace.label == 'VM'
    assert arena.root.trace.data.signature == 'warp(uint256)'


def test_cheatcodes_can_be_left_out():
    warp = Function.from_signature('warp(uint256)')
    arena = CallTraceArena()
    arena.allocate(None, make_trace(address=CHEATCODE_ADDRESS, data=calldata(warp, ['uint256'], [1])))

    CallTraceDecoder(include_cheatcodes=False).decode(arena)

    assert arena.root.trace.label is None
    assert isinstance(arena.root.trace.data, RawCall)


def test_precompile_calls_are_decoded():
    arena = CallTraceArena()
    arena.allocate(None, make_trace(address='0x0000000000000000000000000000000000000004', data=b'\xca\xfe'))

    CallTraceDecoder().decode(arena)

    assert arena.root.trace.label == PRECOMPILE_LABEL
    assert arena.root.trace.data.name == 'identity'


def test_existing_label_is_kept(token_arena):
    token_arena.root.trace.label = 'MyToken'
    decoder = CallTraceDecoder(labels={TOKEN: 'Token'})
    decoder.decode(token_arena)

    assert token_arena.root.trace.label == 'MyToken'


def test_labels_added_after_construction_are_applied(token_arena):
    decoder = CallTraceDecoder()
    decoder.add_labels({TOKEN.lower(): 'Token'})
    decoder.decode(token_arena)

    assert token_arena.root.trace.label == 'Token'


def test_signature_lookup_names_unknown_selectors():
    selector = bytes.fromhex('a9059cbb')
    lookup = StaticLookup({selector: 'transfer(address,uint256)'})
    decoder = CallTraceDecoder(signature_lookup=lookup)
    arena = CallTraceArena()
    arena.allocate(None, make_trace(data=selector + encode(['address', 'uint256'], [ALICE, 3])))
    arena.allocate(0, make_trace(depth=1, data=selector + encode(['address', 'uint256'], [BOB, 4])))

    decoder.decode(arena)

    assert arena.root.trace.data == DecodedCall(
        'transfer', 'transfer(address,uint256)', [ALICE, '3'], arena.root.trace.data.raw,
    )
    assert arena[1].trace.data.args == [BOB, '4']
    # the second node is served from the functions learned for the first
    assert lookup.queries == [selector]


def test_signature_lookup_of_zero_argument_function():
    selector = bytes.fromhex('18160ddd')
    decoder = CallTraceDecoder(signature_lookup=StaticLookup({selector: 'totalSupply()'}))
    arena = CallTraceArena()
    arena.allocate(None, make_trace(data=selector, output=encode(['uint256'], [5])))

    decoder.decode(arena)

    assert arena.root.trace.data == DecodedCall('totalSupply', 'totalSupply()', [], selector)
    # looked-up functions carry no outputs
    assert isinstance(arena.root.trace.output, RawReturn)


def test_signature_lookup_with_mismatching_answer_is_ignored():
    selector = bytes.fromhex('a9059cbb')
    lookup = StaticLookup({selector: 'approve(address,uint256)'})
    decoder = CallTraceDecoder(signature_lookup=lookup)
    arena = CallTraceArena()
    arena.allocate(None, make_trace(data=selector + encode(['address', 'uint256'], [ALICE, 3])))

    decoder.decode(arena)

    assert isinstance(arena.root.trace.data, RawCall)


def test_add_function_ignores_duplicates(erc20_abi):
    decoder = CallTraceDecoder(include_cheatcodes=False)
    decoder.add_abis([erc20_abi, erc20_abi])

    assert len(decoder.functions[bytes.fromhex('a9059cbb')]) == 1
    assert len(decoder.errors.errors) == 1
    assert sum(len(events) for events in decoder.events.values()) == 1
