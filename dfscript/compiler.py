import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .blocks import Block, dumps, template
from .config import CompilerSettings, settings as default_settings
from .items import Renderer
from .lowering import Lowerer
from .parser import GRAMMAR_PATH, DFParser
from .values import render_value

logger = logging.getLogger("dfscript.compiler")


@dataclass
class CompiledUnit:
    """One event, function or process, flattened."""
    kind: str
    name: str
    blocks: List[Block] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return template(self.blocks)


@dataclass
class CompiledProgram:
    units: List[CompiledUnit] = field(default_factory=list)
    # Settings of the compiler that produced the program
    settings: Optional[CompilerSettings] = field(default=None, repr=False, compare=False)

    def __iter__(self) -> Iterator[CompiledUnit]:
        return iter(self.units)

    def __len__(self):
        return len(self.units)

    def __getitem__(self, idx):
        return self.units[idx]

    def to_json(self) -> List[Dict[str, Any]]:
        return [unit.to_json() for unit in self.units]

    def dumps(self, compact: bool = None) -> str:
        if compact is None:
            compact = (self.settings or default_settings).COMPACT_JSON
        return dumps(self.to_json(), compact=compact)


class Compiler:
    def __init__(
        self,
        settings: CompilerSettings = None,
        renderer: Renderer = render_value,
        grammar_path: str = GRAMMAR_PATH,
    ):
        self.settings = settings or default_settings
        if self.settings.DEBUG:
            # Process-wide: the package logger stays at DEBUG afterwards
            logging.getLogger("dfscript").setLevel(logging.DEBUG)
        self.parser = DFParser(grammar_path)
        self.lowerer = Lowerer(self.settings, renderer)

    def compile(self, source: str) -> CompiledProgram:
        """Compile a whole program, or raise on the first error.

        Units are independent and kept in source order; calls only name
        their target.
        """
        units = self.parser.parse(source)
        program = CompiledProgram(settings=self.settings)
        for unit in units:
            program.units.append(CompiledUnit(unit.kind, unit.name, self.lowerer.lower_unit(unit)))
        logger.debug(f"Compiled {len(program)} units")
        return program


def compile_source(source: str, settings: CompilerSettings = None) -> CompiledProgram:
    return Compiler(settings).compile(source)
