"""
Decoding module for evmtrace.

ABI model, value labeling and the revert, cheatcode and precompile decoders
used by the call trace nodes.
"""

from .abi import (
    SELECTOR_LEN,
    Abi,
    AbiError,
    Event,
    Function,
    Param,
    Token,
    decode_tokens,
    load_abi,
)
from .labels import format_token, label, normalize_labels
from .revert import decode_revert, PANIC_REASONS
from .cheatcodes import (
    CHEATCODE_ADDRESS,
    CHEATCODE_FUNCTIONS,
    cheatcode_abi,
    decode_cheatcode_inputs,
)
from .precompiles import PRECOMPILE_LABEL, PRECOMPILES, precompile_at
from .signatures import SignatureLookup

__all__ = [
    'SELECTOR_LEN',
    'Abi',
    'AbiError',
    'Event',
    'Function',
    'Param',
    'Token',
    'decode_tokens',
    'load_abi',
    'format_token',
    'label',
    'normalize_labels',
    'decode_revert',
    'PANIC_REASONS',
    'CHEATCODE_ADDRESS',
    'CHEATCODE_FUNCTIONS',
    'cheatcode_abi',
    'decode_cheatcode_inputs',
    'PRECOMPILE_LABEL',
    'PRECOMPILES',
    'precompile_at',
    'SignatureLookup',
]
