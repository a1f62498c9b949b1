"""
Mini-Pascal Symbol Table

A flat, two-tier (global / one active procedure) registry of declared names.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple


GLOBAL_SCOPE = "global"


class DataType(Enum):
    """Declared type of a variable or parameter."""
    INTEGER = "integer"
    REAL = "real"


class Category(Enum):
    """What kind of entity a symbol names."""
    VARIABLE = "variable"
    PROCEDURE = "procedure"
    PARAMETER = "parameter"


@dataclass(frozen=True)
class Symbol:
    """A declared name.

    For variables and parameters ``address`` is a memory cell; for a
    procedure it is the index of its first instruction.
    """

    name: str
    type: Optional[DataType]
    category: Category
    scope: str
    address: int
    params: Tuple[DataType, ...] = ()

    @property
    def is_procedure(self) -> bool:
        return self.category == Category.PROCEDURE

    def __str__(self) -> str:
        type_name = self.type.value if self.type else "-"
        return (f"{self.name:<12s} {type_name:<8s} {self.category.value:<10s} "
                f"{self.scope:<12s} {self.address}")


class SymbolTable:
    """
    Symbols for one compilation.

    Only one non-global scope is ever active: entering a procedure scope
    replaces the previous one, so procedures cannot nest.
    """

    def __init__(self):
        self.symbols: List[Symbol] = []
        self.current_scope = GLOBAL_SCOPE

    def enter_scope(self, name: str) -> None:
        """Make ``name`` the active procedure scope."""
        self.current_scope = name

    def exit_scope(self) -> None:
        """Return to the global scope."""
        self.current_scope = GLOBAL_SCOPE

    def declare(self, symbol: Symbol) -> Symbol:
        """Append a symbol. Callers check for redeclaration first."""
        self.symbols.append(symbol)
        return symbol

    def lookup(self, name: str) -> Optional[Symbol]:
        """Find ``name`` in the current scope, then in the global scope."""
        for symbol in self.symbols:
            if symbol.name == name and symbol.scope == self.current_scope:
                return symbol

        for symbol in self.symbols:
            if symbol.name == name and symbol.scope == GLOBAL_SCOPE:
                return symbol

        return None

    def exists_in_current_scope(self, name: str) -> bool:
        return any(s.name == name and s.scope == self.current_scope
                   for s in self.symbols)

    def in_scope(self, scope: str) -> List[Symbol]:
        """All symbols owned by ``scope``, in declaration order."""
        return [s for s in self.symbols if s.scope == scope]

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.symbols)

    def __len__(self) -> int:
        return len(self.symbols)

    def format(self) -> str:
        """Human-readable listing of every symbol."""
        lines = ["=== Symbol Table ==="]
        lines.append(f"{'name':<12s} {'type':<8s} {'category':<10s} "
                     f"{'scope':<12s} address")
        for symbol in self.symbols:
            lines.append(str(symbol))
        return "\n".join(lines)
