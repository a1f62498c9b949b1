"""
minipascal - Mini-Pascal compiler and stack virtual machine

Compiles programs in a small Pascal dialect to bytecode and runs them.

Example:
    import minipascal as mp

    code = mp.parse(mp.tokenize('''
        program demo;
        var x: integer;
        begin
            read(x);
            write(x * 2)
        end.
    '''))
    mp.run(code)
"""

from minipascal.api.context import Context, Script
from minipascal.api.interpreter import VirtualMachine, VMStatus, run
from minipascal.compiler import (
    compile_source, compile_file, tokenize, parse, Bytecode, Instruction, OpCode,
    PascalError, LexicalError, ParseError, SemanticError, ExecutionError,
    BytecodeFormatError,
)

__version__ = "0.1.0"

__all__ = [
    # Main API
    'Context',
    'Script',
    'VirtualMachine',
    'VMStatus',

    # Pipeline
    'tokenize',
    'parse',
    'run',
    'compile_source',
    'compile_file',
    'Bytecode',
    'Instruction',
    'OpCode',

    # Errors
    'PascalError',
    'LexicalError',
    'ParseError',
    'SemanticError',
    'ExecutionError',
    'BytecodeFormatError',
]


def version() -> str:
    """Get minipascal version string."""
    return __version__
