"""
Mini-Pascal Compiler Package

A single-pass compiler for the Mini-Pascal language.
Compiles source code to bytecode for the stack virtual machine.
"""

from .tokens import Token, TokenType
from .lexer import Lexer, tokenize
from .symbols import Symbol, SymbolTable, Category, DataType, GLOBAL_SCOPE
from .bytecode import Bytecode, Instruction, OpCode
from .parser import Parser, parse
from .errors import (
    PascalError, LexicalError, ParseError, SemanticError,
    ExecutionError, BytecodeFormatError,
)

__all__ = [
    "Token",
    "TokenType",
    "Lexer",
    "tokenize",
    "Symbol",
    "SymbolTable",
    "Category",
    "DataType",
    "GLOBAL_SCOPE",
    "Bytecode",
    "Instruction",
    "OpCode",
    "Parser",
    "parse",
    "PascalError",
    "LexicalError",
    "ParseError",
    "SemanticError",
    "ExecutionError",
    "BytecodeFormatError",
]


def compile_source(source: str) -> Bytecode:
    """
    Compile Mini-Pascal source code to bytecode.

    Args:
        source: Mini-Pascal source code string

    Returns:
        Bytecode object ready for VM execution

    Raises:
        PascalError: If compilation fails
    """
    return Parser(Lexer(source)).parse()


def compile_file(filepath: str) -> Bytecode:
    """
    Compile a Mini-Pascal source file to bytecode.

    Args:
        filepath: Path to the source file

    Returns:
        Bytecode object ready for VM execution
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()
    try:
        return compile_source(source)
    except PascalError as e:
        raise e.with_filename(filepath)
