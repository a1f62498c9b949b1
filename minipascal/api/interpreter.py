"""
Mini-Pascal Virtual Machine

A fetch-decode-execute interpreter for compiled Mini-Pascal bytecode.
"""

import logging
import operator
import sys
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, TextIO

import numpy as np

from minipascal.compiler.bytecode import Bytecode, OpCode
from minipascal.compiler.errors import ExecutionError

logger = logging.getLogger(__name__)


# Number of memory cells of a machine
MEMORY_SIZE = 1000


class VMStatus(Enum):
    READY = "ready"
    RUNNING = "running"
    HALTED = "halted"
    ERROR = "error"


ARITHMETIC: Dict[OpCode, Callable[[float, float], float]] = {
    OpCode.SOMA: operator.add,
    OpCode.SUBT: operator.sub,
    OpCode.MULT: operator.mul,
}

COMPARISONS: Dict[OpCode, Callable[[float, float], bool]] = {
    OpCode.CMIG: operator.eq,
    OpCode.CMDG: operator.ne,
    OpCode.CMAI: operator.ge,
    OpCode.CPMI: operator.le,
    OpCode.CMMA: operator.gt,
    OpCode.CMME: operator.lt,
}


def format_value(value: float) -> str:
    """Render a number the way ``IMPR`` prints it: 5, 2.5, -0.125."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


class VirtualMachine:
    """
    Stack machine for Mini-Pascal bytecode.

    State is a fixed-size memory array, an operand stack of floats and a
    return-address stack of instruction indices. Parameters travel on the
    operand stack; PUSHER/CHPR/RTPR implement calls.
    """

    def __init__(self, bytecode: Bytecode, memory_size: int = MEMORY_SIZE,
                 input: Optional[TextIO] = None, output: Optional[TextIO] = None):
        """
        Initialize the machine.

        Args:
            bytecode: Compiled program
            memory_size: Number of memory cells
            input: Stream ``read`` takes numbers from (default: stdin)
            output: Stream ``write`` prints to (default: stdout)
        """
        if memory_size < 0:
            raise ExecutionError(f"Memory size must not be negative, got {memory_size}")
        if memory_size < bytecode.memory_used:
            raise ExecutionError(
                f"Program needs {bytecode.memory_used} memory cells, "
                f"machine has {memory_size}"
            )
        self.bytecode = bytecode
        self.memory_size = memory_size
        self.input = input if input is not None else sys.stdin
        self.output = output if output is not None else sys.stdout
        self.reset()

    def reset(self) -> None:
        """Clear memory, stacks and counters."""
        self.memory = np.zeros(self.memory_size, dtype=np.float64)
        self.stack: List[float] = []
        self.return_stack: List[int] = []
        self.pc = 0
        self.steps = 0
        self.released_cells = 0
        self.status = VMStatus.READY
        self._input_tokens: Deque[str] = deque()

    def run(self) -> VMStatus:
        """
        Execute until the program stops.

        Returns:
            Final status (HALTED)

        Raises:
            ExecutionError: If the program cannot continue
        """
        self.status = VMStatus.RUNNING
        try:
            while self.status == VMStatus.RUNNING:
                self.step()
        except ExecutionError:
            self.status = VMStatus.ERROR
            logger.debug("machine failed at pc=%d after %d steps", self.pc, self.steps)
            raise

        logger.debug("machine halted after %d steps", self.steps)
        return self.status

    def step(self) -> None:
        """Execute one instruction."""
        # Running past the last instruction stops the machine like PARA
        if self.pc >= len(self.bytecode):
            self.status = VMStatus.HALTED
            return

        instr = self.bytecode[self.pc]
        opcode = instr.opcode
        arg = instr.argument
        self.steps += 1

        # Program markers
        if opcode == OpCode.INPP:
            pass

        elif opcode == OpCode.PARA:
            self.status = VMStatus.HALTED
            return

        # Memory
        elif opcode == OpCode.ALME:
            pass

        elif opcode == OpCode.CRCT:
            self.push(self._literal(arg))

        elif opcode == OpCode.CRVL:
            self.push(float(self.memory[self._address(arg)]))

        elif opcode == OpCode.ARMZ:
            address = self._address(arg)
            self.memory[address] = self.pop()

        # Arithmetic
        elif opcode in ARITHMETIC:
            b = self.pop()
            a = self.pop()
            self.push(ARITHMETIC[opcode](a, b))

        elif opcode == OpCode.DIVI:
            b = self.pop()
            a = self.pop()
            # IEEE semantics: x/0 is +-inf, 0/0 is nan
            with np.errstate(divide='ignore', invalid='ignore'):
                self.push(float(np.float64(a) / np.float64(b)))

        elif opcode == OpCode.INVE:
            self.push(-self.pop())

        # Comparison
        elif opcode in COMPARISONS:
            b = self.pop()
            a = self.pop()
            self.push(1.0 if COMPARISONS[opcode](a, b) else 0.0)

        # Input / output
        elif opcode == OpCode.LEIT:
            self.push(self.read_value())

        elif opcode == OpCode.IMPR:
            self.output.write(format_value(self.pop()) + "\n")

        # Control flow
        elif opcode == OpCode.DSVF:
            target = self._target(arg)
            if self.pop() == 0.0:
                self.pc = target
                return

        elif opcode == OpCode.DSVI:
            self.pc = self._target(arg)
            return

        # Procedures
        elif opcode == OpCode.PUSHER:
            self.return_stack.append(self._target(arg))

        elif opcode == OpCode.CHPR:
            self.pc = self._target(arg)
            return

        elif opcode == OpCode.RTPR:
            if not self.return_stack:
                raise ExecutionError("Return with empty return-address stack", self.pc)
            self.pc = self.return_stack.pop()
            return

        elif opcode == OpCode.PARAM:
            self.push(float(self.memory[self._address(arg)]))

        elif opcode == OpCode.DESM:
            self.released_cells += self._count(arg)

        else:
            raise ExecutionError(f"Unknown opcode: {opcode}", self.pc)

        self.pc += 1

    def push(self, value: float) -> None:
        """Push a value onto the operand stack."""
        self.stack.append(value)

    def pop(self) -> float:
        """Pop a value from the operand stack."""
        if not self.stack:
            raise ExecutionError("Operand stack underflow", self.pc)
        return self.stack.pop()

    def read_value(self) -> float:
        """Take the next whitespace-separated number from the input stream."""
        while not self._input_tokens:
            line = self.input.readline()
            if not line:
                raise ExecutionError("No input left for read", self.pc)
            self._input_tokens.extend(line.split())

        text = self._input_tokens.popleft()
        try:
            return float(text)
        except ValueError:
            raise ExecutionError(f"Invalid numeric input {text!r}", self.pc) from None

    def _address(self, arg: Any) -> int:
        if not isinstance(arg, int) or not 0 <= arg < self.memory_size:
            raise ExecutionError(f"Memory address out of range: {arg!r}", self.pc)
        return arg

    def _target(self, arg: Any) -> int:
        if not isinstance(arg, int) or not 0 <= arg <= len(self.bytecode):
            raise ExecutionError(f"Jump target out of range: {arg!r}", self.pc)
        return arg

    def _count(self, arg: Any) -> int:
        if not isinstance(arg, int) or arg < 0:
            raise ExecutionError(f"Invalid cell count: {arg!r}", self.pc)
        return arg

    def _literal(self, arg: Any) -> float:
        try:
            return float(arg)
        except (TypeError, ValueError):
            raise ExecutionError(f"Invalid constant: {arg!r}", self.pc) from None


def run(bytecode: Bytecode, input: Optional[TextIO] = None,
        output: Optional[TextIO] = None, memory_size: int = MEMORY_SIZE) -> VirtualMachine:
    """Execute bytecode and return the halted machine."""
    vm = VirtualMachine(bytecode, memory_size=memory_size, input=input, output=output)
    vm.run()
    return vm
