"""
Mini-Pascal Lexer

Tokenizes Mini-Pascal source code into a lazy, restartable stream of tokens.
"""

import logging
from typing import Iterator, List

from .tokens import Token, TokenType, KEYWORDS
from .errors import LexicalError

logger = logging.getLogger(__name__)


# Single-character operators and delimiters
SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '.': TokenType.DOT,
    ',': TokenType.COMMA,
    ';': TokenType.SEMICOLON,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '$': TokenType.DOLLAR,
    '=': TokenType.EQ,
}


def is_digit(c: str) -> bool:
    """ASCII decimal digit. str.isdigit() also accepts superscripts."""
    return '0' <= c <= '9'


class Lexer:
    """Lexical analyzer for Mini-Pascal source code."""

    def __init__(self, source: str):
        """
        Initialize the lexer.

        Args:
            source: Mini-Pascal source code to tokenize
        """
        self.source = source
        self.reset()

    def reset(self) -> None:
        """Restart scanning from the beginning of the source."""
        self.start = 0      # Start of current token
        self.current = 0    # Current position
        self.line = 1       # Current line number

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to and including EOF."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return

    def tokenize(self) -> List[Token]:
        """
        Tokenize the entire source code from the current position.

        Returns:
            List of tokens ending with a single EOF token
        """
        tokens = list(self)
        logger.debug("scanned %d tokens", len(tokens))
        return tokens

    def next_token(self) -> Token:
        """
        Scan and return the next token.

        Once the end of input is reached every further call returns
        another EOF token.
        """
        self.skip_whitespace_and_comments()
        self.start = self.current

        if self.is_at_end():
            return Token(TokenType.EOF, "", self.line)

        c = self.advance()

        if c.isalpha():
            return self.identifier()
        if is_digit(c):
            return self.number()

        if c == ':':
            if self.match('='):
                return self.make_token(TokenType.ASSIGN)
            return self.make_token(TokenType.COLON)
        if c == '<':
            if self.match('='):
                return self.make_token(TokenType.LE)
            if self.match('>'):
                return self.make_token(TokenType.NE)
            return self.make_token(TokenType.LT)
        if c == '>':
            if self.match('='):
                return self.make_token(TokenType.GE)
            return self.make_token(TokenType.GT)

        token_type = SINGLE_CHAR_TOKENS.get(c)
        if token_type is None:
            raise LexicalError(c, self.line)
        return self.make_token(token_type)

    def advance(self) -> str:
        """Consume and return the current character."""
        c = self.source[self.current]
        self.current += 1
        return c

    def peek(self) -> str:
        """Return the current character without consuming it."""
        if self.is_at_end():
            return '\0'
        return self.source[self.current]

    def peek_next(self) -> str:
        """Return the next character without consuming it."""
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def match(self, expected: str) -> bool:
        """Consume the current character if it matches expected."""
        if self.is_at_end():
            return False
        if self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def is_at_end(self) -> bool:
        """Check if we've reached the end of the source."""
        return self.current >= len(self.source)

    def make_token(self, type: TokenType) -> Token:
        lexeme = self.source[self.start:self.current]
        return Token(type, lexeme, self.line)

    def skip_whitespace_and_comments(self) -> None:
        """Skip blanks, newlines, { ... } and /* ... */ comments."""
        while not self.is_at_end():
            c = self.peek()
            if c in ' \t\r':
                self.advance()
            elif c == '\n':
                self.line += 1
                self.advance()
            elif c == '{':
                self.advance()
                self.skip_until('}')
            elif c == '/' and self.peek_next() == '*':
                self.advance()
                self.advance()
                self.skip_until('*/')
            else:
                return

    def skip_until(self, terminator: str) -> None:
        """Skip a comment body; an unterminated comment runs to end of input."""
        while not self.is_at_end():
            if self.source.startswith(terminator, self.current):
                self.current += len(terminator)
                return
            if self.advance() == '\n':
                self.line += 1

    def number(self) -> Token:
        """Scan an integer or real literal."""
        while is_digit(self.peek()):
            self.advance()

        # A '.' only belongs to the number when a digit follows it
        if self.peek() == '.' and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()
            return self.make_token(TokenType.REAL_LITERAL)

        return self.make_token(TokenType.INT_LITERAL)

    def identifier(self) -> Token:
        """Scan an identifier or keyword."""
        while self.peek().isalpha() or is_digit(self.peek()) or self.peek() == '_':
            self.advance()

        text = self.source[self.start:self.current]
        return self.make_token(KEYWORDS.get(text.lower(), TokenType.IDENT))


def tokenize(source: str) -> Lexer:
    """Return a token stream over the given source."""
    return Lexer(source)
