"""
Core module for evmtrace.

This module contains the call trace data model and its processing:
- CallTraceArena / CallTraceNode: the recorded call tree
- CallTraceDecoder: decode pass over an arena
- parity_action / parity_result / geth_trace: external trace formats
- TraceSerializer: arena level JSON views
"""

from .types import (
    ZERO_ADDRESS,
    CallKind,
    InstructionResult,
    RawCall,
    DecodedCall,
    RawReturn,
    DecodedReturn,
    RawLog,
    DecodedLog,
    StorageSlot,
    CallTraceStep,
    CallTrace,
    CallOrder,
    LogOrder,
)
from .exporters import (
    CallAction,
    CreateAction,
    SuicideAction,
    CallResult,
    CreateResult,
    StructLog,
    GethTrace,
    parity_action,
    parity_result,
    geth_trace,
)
from .node import CallTraceNode
from .arena import CallTraceArena
from .decoder import CallTraceDecoder
from .serializer import TraceSerializer

__all__ = [
    'ZERO_ADDRESS',
    'CallKind',
    'InstructionResult',
    'RawCall',
    'DecodedCall',
    'RawReturn',
    'DecodedReturn',
    'RawLog',
    'DecodedLog',
    'StorageSlot',
    'CallTraceStep',
    'CallTrace',
    'CallOrder',
    'LogOrder',
    'CallAction',
    'CreateAction',
    'SuicideAction',
    'CallResult',
    'CreateResult',
    'StructLog',
    'GethTrace',
    'parity_action',
    'parity_result',
    'geth_trace',
    'CallTraceNode',
    'CallTraceArena',
    'CallTraceDecoder',
    'TraceSerializer',
]
