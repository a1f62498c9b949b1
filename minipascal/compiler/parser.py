"""
Mini-Pascal Parser

Predictive recursive descent parser that emits bytecode while it parses.
There is no AST: every production consumes its tokens and appends the
instructions for the construct it recognizes, backpatching forward jumps
once their targets are known.
"""

import logging
from typing import List, Optional

from .tokens import Token, TokenType, STATEMENT_START
from .lexer import Lexer
from .symbols import SymbolTable, Symbol, Category, DataType, GLOBAL_SCOPE
from .bytecode import Bytecode, OpCode
from .errors import ParseError, SemanticError

logger = logging.getLogger(__name__)


RELATIONAL_OPCODES = {
    TokenType.EQ: OpCode.CMIG,
    TokenType.NE: OpCode.CMDG,
    TokenType.GE: OpCode.CMAI,
    TokenType.LE: OpCode.CPMI,
    TokenType.GT: OpCode.CMMA,
    TokenType.LT: OpCode.CMME,
}

ADDITIVE_OPCODES = {
    TokenType.PLUS: OpCode.SOMA,
    TokenType.MINUS: OpCode.SUBT,
}

MULTIPLICATIVE_OPCODES = {
    TokenType.STAR: OpCode.MULT,
    TokenType.SLASH: OpCode.DIVI,
}

TYPE_KEYWORDS = {
    TokenType.INTEGER: DataType.INTEGER,
    TokenType.REAL: DataType.REAL,
}


class Parser:
    """Recursive descent parser and code generator for Mini-Pascal."""

    def __init__(self, lexer: Lexer):
        """
        Initialize the parser.

        Args:
            lexer: Token stream to pull tokens from
        """
        self.lexer = lexer
        self.symbols = SymbolTable()
        self.code = Bytecode()
        self.program_name: Optional[str] = None
        self.current = lexer.next_token()
        self.previous: Optional[Token] = None

    def parse(self) -> Bytecode:
        """
        Parse a whole program and return its bytecode.

        Raises:
            LexicalError, ParseError, SemanticError: on the first problem found
        """
        self.program()

        pending = self.code.pending_patches()
        if pending:
            raise RuntimeError(f"Unpatched jumps at {pending}")

        logger.debug("compiled program %r: %d instructions, %d symbols, %d cells",
                     self.program_name, len(self.code), len(self.symbols),
                     self.code.memory_used)
        return self.code

    # =========================================================================
    # Program and declarations
    # =========================================================================

    def program(self) -> None:
        """program IDENT [;] declarations begin statements end ."""
        self.consume(TokenType.PROGRAM, "Expected 'program'")
        self.program_name = self.consume(TokenType.IDENT, "Expected program name").lexeme
        self.match(TokenType.SEMICOLON)

        self.code.emit(OpCode.INPP)
        self.declarations()

        self.consume(TokenType.BEGIN, "Expected 'begin'")
        self.statements()
        self.consume(TokenType.END, "Expected 'end'")
        self.consume(TokenType.DOT, "Expected '.' after program body")
        self.consume(TokenType.EOF, "Unexpected text after end of program")

        self.code.emit(OpCode.PARA)

    def declarations(self) -> None:
        while True:
            if self.check(TokenType.VAR):
                self.var_declaration()
                self.match(TokenType.SEMICOLON)
            elif self.check(TokenType.PROCEDURE):
                self.procedure_group()
            else:
                return

    def var_declaration(self) -> int:
        """
        var a, b: type

        Every name gets a fresh address and an ALME 1. Returns the number
        of names declared.
        """
        self.consume(TokenType.VAR, "Expected 'var'")
        names = self.identifier_list()
        self.consume(TokenType.COLON, "Expected ':' after variable names")
        data_type = self.type_spec()

        for name in names:
            self.declare(name, data_type, Category.VARIABLE)
            self.code.emit(OpCode.ALME, 1)

        return len(names)

    def type_spec(self) -> DataType:
        data_type = TYPE_KEYWORDS.get(self.current.type)
        if data_type is None:
            self.error("Expected 'real' or 'integer'")
        self.advance()
        return data_type

    def identifier_list(self) -> List[Token]:
        names = [self.consume(TokenType.IDENT, "Expected identifier")]
        while self.match(TokenType.COMMA):
            names.append(self.consume(TokenType.IDENT, "Expected identifier after ','"))
        return names

    def declare(self, name: Token, data_type: DataType, category: Category) -> Symbol:
        """Declare a variable or parameter in the current scope."""
        self.check_redeclaration(name)
        symbol = Symbol(name.lexeme, data_type, category,
                        self.symbols.current_scope, self.code.allocate())
        return self.symbols.declare(symbol)

    def check_redeclaration(self, name: Token) -> None:
        if self.symbols.exists_in_current_scope(name.lexeme):
            raise SemanticError(
                f"Identifier '{name.lexeme}' already declared in scope "
                f"'{self.symbols.current_scope}'",
                name.line
            )

    # =========================================================================
    # Procedures
    # =========================================================================

    def procedure_group(self) -> None:
        """
        Consecutive procedure declarations.

        Each procedure is preceded by a DSVI; all of them are patched to the
        first instruction after the last procedure so that sequential
        execution skips the bodies.
        """
        skips = []
        while self.check(TokenType.PROCEDURE):
            skips.append(self.code.emit_jump(OpCode.DSVI))
            self.procedure_declaration()

        after = self.code.next_index
        for index in skips:
            self.code.patch(index, after)

    def procedure_declaration(self) -> None:
        self.consume(TokenType.PROCEDURE, "Expected 'procedure'")
        name = self.consume(TokenType.IDENT, "Expected procedure name")
        self.check_redeclaration(name)

        entry = self.code.next_index
        self.symbols.enter_scope(name.lexeme)

        params = self.parameters()
        self.symbols.declare(Symbol(
            name.lexeme, None, Category.PROCEDURE, GLOBAL_SCOPE, entry,
            tuple(p.type for p in params)
        ))

        # Arguments arrive on the operand stack, last one on top
        for param in reversed(params):
            self.code.emit(OpCode.ARMZ, param.address)

        self.match(TokenType.SEMICOLON)

        local_count = 0
        while self.check(TokenType.VAR):
            local_count += self.var_declaration()
            self.match(TokenType.SEMICOLON)

        self.consume(TokenType.BEGIN, "Expected 'begin' in procedure body")
        self.statements()
        self.consume(TokenType.END, "Expected 'end' after procedure body")

        self.code.emit(OpCode.DESM, len(params) + local_count)
        self.code.emit(OpCode.RTPR)

        self.symbols.exit_scope()
        self.match(TokenType.SEMICOLON)

    def parameters(self) -> List[Symbol]:
        """[ ( a, b: type ; c: type ) ]"""
        params: List[Symbol] = []
        if not self.match(TokenType.LPAREN):
            return params

        while True:
            names = self.identifier_list()
            self.consume(TokenType.COLON, "Expected ':' after parameter names")
            data_type = self.type_spec()
            for name in names:
                params.append(self.declare(name, data_type, Category.PARAMETER))
            if not self.match(TokenType.SEMICOLON):
                break

        self.consume(TokenType.RPAREN, "Expected ')' after parameters")
        return params

    # =========================================================================
    # Statements
    # =========================================================================

    def statements(self) -> None:
        """Statements separated by ';'. Empty statements are allowed."""
        while True:
            if self.current.type in STATEMENT_START:
                self.statement()
            if not self.match(TokenType.SEMICOLON):
                return

    def statement(self) -> None:
        if self.match(TokenType.READ):
            self.read_statement()
        elif self.match(TokenType.WRITE):
            self.write_statement()
        elif self.match(TokenType.IF):
            self.if_statement()
        elif self.match(TokenType.WHILE):
            self.while_statement()
        else:
            name = self.consume(TokenType.IDENT, "Expected statement")
            if self.match(TokenType.ASSIGN):
                self.assignment(name)
            else:
                self.procedure_call(name)

    def read_statement(self) -> None:
        self.consume(TokenType.LPAREN, "Expected '(' after 'read'")
        names = self.identifier_list()
        self.consume(TokenType.RPAREN, "Expected ')' after read list")

        for name in names:
            symbol = self.resolve_variable(name)
            self.code.emit(OpCode.LEIT)
            self.code.emit(OpCode.ARMZ, symbol.address)

    def write_statement(self) -> None:
        self.consume(TokenType.LPAREN, "Expected '(' after 'write'")
        self.expression()
        self.code.emit(OpCode.IMPR)
        while self.match(TokenType.COMMA):
            self.expression()
            self.code.emit(OpCode.IMPR)
        self.consume(TokenType.RPAREN, "Expected ')' after write list")

    def if_statement(self) -> None:
        """if cond then S1 [else S2] $"""
        self.condition()
        false_jump = self.code.emit_jump(OpCode.DSVF)

        self.consume(TokenType.THEN, "Expected 'then' after condition")
        self.statements()

        end_jump = self.code.emit_jump(OpCode.DSVI)
        self.code.patch(false_jump, self.code.next_index)

        if self.match(TokenType.ELSE):
            self.statements()

        self.consume(TokenType.DOLLAR, "Expected '$' to close 'if'")
        self.code.patch(end_jump, self.code.next_index)

    def while_statement(self) -> None:
        """while cond do S $"""
        loop_start = self.code.next_index
        self.condition()
        exit_jump = self.code.emit_jump(OpCode.DSVF)

        self.consume(TokenType.DO, "Expected 'do' after condition")
        self.statements()
        self.consume(TokenType.DOLLAR, "Expected '$' to close 'while'")

        self.code.emit(OpCode.DSVI, loop_start)
        self.code.patch(exit_jump, self.code.next_index)

    def assignment(self, name: Token) -> None:
        symbol = self.resolve_variable(name)
        self.expression()
        self.code.emit(OpCode.ARMZ, symbol.address)

    def procedure_call(self, name: Token) -> None:
        """
        name [ ( a, b ) ]

        Emits PUSHER, one PARAM per argument and CHPR. The PUSHER target is
        the instruction right after the CHPR.
        """
        procedure = self.resolve(name)
        if not procedure.is_procedure:
            raise SemanticError(f"'{name.lexeme}' is not a procedure", name.line)

        args: List[Token] = []
        if self.match(TokenType.LPAREN):
            args = self.identifier_list()
            self.consume(TokenType.RPAREN, "Expected ')' after arguments")

        if len(args) != len(procedure.params):
            raise SemanticError(
                f"Procedure '{name.lexeme}' expects {len(procedure.params)} "
                f"argument(s), got {len(args)}",
                name.line
            )

        arg_symbols = [self.resolve_variable(arg) for arg in args]

        return_jump = self.code.emit_jump(OpCode.PUSHER)
        for arg in arg_symbols:
            self.code.emit(OpCode.PARAM, arg.address)
        self.code.patch(return_jump, self.code.next_index + 1)
        self.code.emit(OpCode.CHPR, procedure.address)

    # =========================================================================
    # Expressions
    # =========================================================================

    def condition(self) -> None:
        """expression relop expression"""
        self.expression()

        operator = self.current
        if not operator.is_relational():
            self.error("Expected relational operator")
        self.advance()

        self.expression()
        self.code.emit(RELATIONAL_OPCODES[operator.type])

    def expression(self) -> None:
        self.term()
        while self.current.type in ADDITIVE_OPCODES:
            operator = self.advance()
            self.term()
            self.code.emit(ADDITIVE_OPCODES[operator.type])

    def term(self) -> None:
        negate = self.match(TokenType.MINUS)
        self.factor()
        if negate:
            self.code.emit(OpCode.INVE)

        while self.current.type in MULTIPLICATIVE_OPCODES:
            operator = self.advance()
            self.factor()
            self.code.emit(MULTIPLICATIVE_OPCODES[operator.type])

    def factor(self) -> None:
        if self.check(TokenType.IDENT):
            symbol = self.resolve_variable(self.advance())
            self.code.emit(OpCode.CRVL, symbol.address)
        elif self.current.is_literal():
            self.code.emit(OpCode.CRCT, self.advance().lexeme)
        elif self.match(TokenType.LPAREN):
            self.expression()
            self.consume(TokenType.RPAREN, "Expected ')' after expression")
        else:
            self.error("Expected identifier, number or '('")

    # =========================================================================
    # Name resolution
    # =========================================================================

    def resolve(self, name: Token) -> Symbol:
        symbol = self.symbols.lookup(name.lexeme)
        if symbol is None:
            raise SemanticError(f"Undeclared identifier '{name.lexeme}'", name.line)
        return symbol

    def resolve_variable(self, name: Token) -> Symbol:
        """Resolve a name used as a value or assignment target."""
        symbol = self.resolve(name)
        if symbol.is_procedure:
            raise SemanticError(
                f"Procedure '{name.lexeme}' cannot be used as a variable", name.line
            )
        return symbol

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def check(self, type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self.current.type == type

    def match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the given types and advance."""
        if self.current.type in types:
            self.advance()
            return True
        return False

    def advance(self) -> Token:
        """Consume and return the current token."""
        self.previous = self.current
        self.current = self.lexer.next_token()
        return self.previous

    def consume(self, type: TokenType, message: str) -> Token:
        """Consume a token of the expected type or raise an error."""
        if self.check(type):
            return self.advance()
        self.error(message)

    def error(self, message: str) -> None:
        token = self.current
        found = token.lexeme if token.type != TokenType.EOF else "end of input"
        raise ParseError(f"{message}, found {token.type.name} ({found!r})", token.line)


def parse(tokenizer: Lexer) -> Bytecode:
    """Parse a token stream into bytecode."""
    return Parser(tokenizer).parse()
