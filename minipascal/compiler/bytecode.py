"""
Mini-Pascal Bytecode Format

Defines the instruction set, the code buffer filled in by the parser and
the plain-text object file format.
"""

import logging
from enum import Enum
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Set, Union

from .errors import BytecodeFormatError

logger = logging.getLogger(__name__)


class OpCode(str, Enum):
    """Stack machine opcodes. The value is the mnemonic written to disk."""

    # Program markers
    INPP = "INPP"        # program start
    PARA = "PARA"        # program stop

    # Memory
    ALME = "ALME"        # operand: cell count
    CRCT = "CRCT"        # operand: literal numeral
    CRVL = "CRVL"        # operand: address
    ARMZ = "ARMZ"        # operand: address

    # Arithmetic
    SOMA = "SOMA"
    SUBT = "SUBT"
    MULT = "MULT"
    DIVI = "DIVI"
    INVE = "INVE"        # unary minus

    # Input / output
    LEIT = "LEIT"
    IMPR = "IMPR"

    # Comparison
    CMIG = "CMIG"        # =
    CMDG = "CMDG"        # <>
    CMAI = "CMAI"        # >=
    CPMI = "CPMI"        # <=
    CMMA = "CMMA"        # >
    CMME = "CMME"        # <

    # Control flow
    DSVF = "DSVF"        # operand: target, jump if false
    DSVI = "DSVI"        # operand: target

    # Procedures
    PUSHER = "PUSHER"    # operand: return index
    CHPR = "CHPR"        # operand: entry index
    RTPR = "RTPR"
    PARAM = "PARAM"      # operand: address
    DESM = "DESM"        # operand: cell count

    def __str__(self) -> str:
        return self.value


# Opcodes that carry an integer operand
INT_OPERAND = frozenset({
    OpCode.ALME, OpCode.CRVL, OpCode.ARMZ,
    OpCode.DSVF, OpCode.DSVI,
    OpCode.PUSHER, OpCode.CHPR, OpCode.PARAM, OpCode.DESM,
})

# Opcodes whose operand is a memory address
ADDRESS_OPERAND = frozenset({OpCode.CRVL, OpCode.ARMZ, OpCode.PARAM})

# Opcodes that carry a literal numeral
TEXT_OPERAND = frozenset({OpCode.CRCT})

# Argument of a jump emitted before its target is known
PLACEHOLDER = -1

Argument = Union[int, str, None]


@dataclass
class Instruction:
    """One opcode with its optional argument."""

    opcode: OpCode
    argument: Argument = None

    def __str__(self) -> str:
        if self.argument is None:
            return str(self.opcode)
        return f"{self.opcode} {self.argument}"


class Bytecode:
    """
    Code buffer for one compilation.

    Instructions are appended and never reordered or removed; only the
    argument of a placeholder jump may be rewritten, once. The buffer also
    owns the memory allocator, which is never reset so every declared name
    gets a program-wide unique address.
    """

    def __init__(self, instructions: Optional[List[Instruction]] = None):
        self.instructions: List[Instruction] = list(instructions or [])
        self.next_address = 0
        self._pending: Set[int] = set()

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bytecode):
            return NotImplemented
        return self.instructions == other.instructions

    @property
    def next_index(self) -> int:
        """Index the next emitted instruction will get."""
        return len(self.instructions)

    @property
    def memory_used(self) -> int:
        return self.next_address

    def allocate(self) -> int:
        """Reserve one memory cell, returning its address."""
        address = self.next_address
        self.next_address += 1
        return address

    def emit(self, opcode: OpCode, argument: Argument = None) -> int:
        """Append an instruction, returning its index."""
        index = len(self.instructions)
        self.instructions.append(Instruction(opcode, argument))
        return index

    def emit_jump(self, opcode: OpCode) -> int:
        """Emit an instruction with a placeholder target to patch later."""
        index = self.emit(opcode, PLACEHOLDER)
        self._pending.add(index)
        return index

    def patch(self, index: int, value: int) -> None:
        """Set the target of a placeholder emitted by ``emit_jump``."""
        if index not in self._pending:
            raise ValueError(f"Instruction {index} is not an unpatched placeholder")
        self.instructions[index].argument = value
        self._pending.discard(index)

    def pending_patches(self) -> List[int]:
        """Indices of placeholders that still wait for a target."""
        return sorted(self._pending)

    def serialize(self) -> str:
        """Render the object file text, one instruction per line."""
        return "".join(f"{instr}\n" for instr in self.instructions)

    @classmethod
    def deserialize(cls, text: str) -> 'Bytecode':
        """Parse object file text back into a code buffer."""
        instructions = []

        for line_no, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue

            parts = line.split(None, 1)
            mnemonic = parts[0]
            operand = parts[1].strip() if len(parts) > 1 else None

            try:
                opcode = OpCode(mnemonic)
            except ValueError:
                raise BytecodeFormatError(f"Unknown mnemonic {mnemonic!r}", line_no) from None

            instructions.append(Instruction(opcode, cls._decode_argument(opcode, operand, line_no)))

        code = cls(instructions)
        code.next_address = code.required_memory()
        logger.debug("decoded %d instructions, %d cells", len(code), code.next_address)
        return code

    def required_memory(self) -> int:
        """
        Cells a program touches, recovered from its instructions.

        The larger of the ALME total and the highest address operand plus
        one. Cells declared but never read, written or allocated are not
        visible in the code and are not counted.
        """
        allocated = sum(i.argument for i in self.instructions if i.opcode == OpCode.ALME)
        highest = max(
            (i.argument for i in self.instructions if i.opcode in ADDRESS_OPERAND),
            default=-1,
        )
        return max(allocated, highest + 1)

    @staticmethod
    def _decode_argument(opcode: OpCode, operand: Optional[str], line_no: int) -> Argument:
        if opcode in INT_OPERAND:
            if operand is None:
                raise BytecodeFormatError(f"{opcode} requires an argument", line_no)
            try:
                return int(operand)
            except ValueError:
                raise BytecodeFormatError(f"{opcode} expects an integer, got {operand!r}", line_no) from None

        if opcode in TEXT_OPERAND:
            if operand is None:
                raise BytecodeFormatError(f"{opcode} requires an argument", line_no)
            try:
                float(operand)
            except ValueError:
                raise BytecodeFormatError(f"{opcode} expects a number, got {operand!r}", line_no) from None
            return operand

        if operand is not None:
            raise BytecodeFormatError(f"{opcode} takes no argument", line_no)
        return None

    def save(self, path: Union[str, Path]) -> None:
        """Write the object file."""
        Path(path).write_text(self.serialize(), encoding='utf-8')

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'Bytecode':
        """Read an object file written by ``save``."""
        text = Path(path).read_text(encoding='utf-8')
        try:
            return cls.deserialize(text)
        except BytecodeFormatError as e:
            raise e.with_filename(str(path))

    def disassemble(self) -> str:
        """Disassemble bytecode to human-readable format."""
        lines = ["=== Generated Code ==="]
        for index, instr in enumerate(self.instructions):
            if instr.argument is None:
                lines.append(f"  {index:4d}: {instr.opcode}")
            else:
                lines.append(f"  {index:4d}: {str(instr.opcode):8s} {instr.argument}")
        return "\n".join(lines)
