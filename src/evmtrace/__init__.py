"""
evmtrace - call trace arena, ABI decoding and trace export
"""

__version__ = "0.1.0"

# Core components
from .core import (
    CallKind,
    InstructionResult,
    CallTrace,
    CallTraceStep,
    CallTraceNode,
    CallTraceArena,
    CallTraceDecoder,
    TraceSerializer,
)

# Decoding
from .decoding import (
    Abi,
    Function,
    Event,
    load_abi,
    label,
    decode_revert,
)

# Providers
from .providers import BlockingProvider

# Utilities
from .utils import (
    EvmTraceError,
    ArenaIndexError,
    NoCandidateFunctionsError,
    setup_logging,
)

__all__ = [
    # Version
    '__version__',
    # Core
    'CallKind',
    'InstructionResult',
    'CallTrace',
    'CallTraceStep',
    'CallTraceNode',
    'CallTraceArena',
    'CallTraceDecoder',
    'TraceSerializer',
    # Decoding
    'Abi',
    'Function',
    'Event',
    'load_abi',
    'label',
    'decode_revert',
    # Providers
    'BlockingProvider',
    # Utils
    'EvmTraceError',
    'ArenaIndexError',
    'NoCandidateFunctionsError',
    'setup_logging',
]
