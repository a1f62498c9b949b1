"""
Mini-Pascal Context

The main interface for compiling, saving, loading and executing programs.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TextIO, Union

from minipascal.compiler import Lexer, Parser, Bytecode, SymbolTable, PascalError
from .interpreter import VirtualMachine, MEMORY_SIZE

logger = logging.getLogger(__name__)


@dataclass
class Script:
    """A compiled program together with the symbols it declared."""
    bytecode: Bytecode
    symbols: SymbolTable = field(default_factory=SymbolTable)
    name: Optional[str] = None

    def listing(self) -> str:
        return self.bytecode.disassemble()


class Context:
    """
    Compilation and execution context.

    Holds the machine configuration shared by every script it runs.

    Example:
        ctx = Context(input=io.StringIO("5"))
        script = ctx.compile("program p; var x: integer; begin read(x); write(x) end.")
        ctx.execute(script)   # prints 5
    """

    def __init__(self, memory_size: int = MEMORY_SIZE,
                 input: Optional[TextIO] = None, output: Optional[TextIO] = None):
        """
        Args:
            memory_size: Memory cells of every machine this context creates
            input: Stream ``read`` consumes numbers from (default: stdin)
            output: Stream ``write`` prints to (default: stdout)
        """
        self.memory_size = memory_size
        self.input = input
        self.output = output

    def compile(self, source: str) -> Script:
        """Compile source text into a script."""
        parser = Parser(Lexer(source))
        bytecode = parser.parse()
        return Script(bytecode, parser.symbols, parser.program_name)

    def compile_file(self, path: Union[str, Path]) -> Script:
        """Compile a source file into a script."""
        source = Path(path).read_text(encoding='utf-8')
        try:
            return self.compile(source)
        except PascalError as e:
            raise e.with_filename(str(path))

    def execute(self, script: Union[Script, Bytecode]) -> VirtualMachine:
        """
        Run a script to completion.

        Returns:
            The halted machine, for inspecting memory and stacks
        """
        bytecode = script.bytecode if isinstance(script, Script) else script
        vm = VirtualMachine(bytecode, memory_size=self.memory_size,
                            input=self.input, output=self.output)
        vm.run()
        return vm

    def save(self, script: Union[Script, Bytecode], path: Union[str, Path]) -> None:
        """Write a script's object file."""
        bytecode = script.bytecode if isinstance(script, Script) else script
        bytecode.save(path)
        logger.debug("saved %d instructions to %s", len(bytecode), path)

    def load(self, path: Union[str, Path]) -> Script:
        """Load an object file written by ``save``."""
        return Script(Bytecode.load(path), name=Path(path).stem)
