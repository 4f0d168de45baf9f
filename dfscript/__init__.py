"""
dfscript: compiles event/function/process scripts into flat code-block
templates for a block-based game scripting engine.
"""
from .blocks import (
    Block,
    BracketDirection,
    BracketType,
    EventDefinition,
    FunctionCall,
    FunctionDefinition,
    Instruction,
    ProcessCall,
    ProcessDefinition,
    ScopeMarker,
)
from .compiler import CompiledProgram, CompiledUnit, Compiler, compile_source
from .config import CompilerSettings, settings
from .errors import CompileError, DFSyntaxError, SlotOverflowError
from .items import Item
from .parser import DFParser

__all__ = [
    "Block",
    "BracketDirection",
    "BracketType",
    "CompileError",
    "CompiledProgram",
    "CompiledUnit",
    "Compiler",
    "CompilerSettings",
    "DFParser",
    "DFSyntaxError",
    "EventDefinition",
    "FunctionCall",
    "FunctionDefinition",
    "Instruction",
    "Item",
    "ProcessCall",
    "ProcessDefinition",
    "ScopeMarker",
    "SlotOverflowError",
    "compile_source",
    "settings",
]
