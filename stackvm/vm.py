"""
StackVM Interpreter — fetch/decode/execute over an 8-bit operand stack.

Execution model:
  1. If ip has reached the end of the program → HALTED
  2. Fetch opcode at ip, advance ip by 1
  3. Look the opcode up in the dispatch table (unknown byte → IllegalOpcode)
  4. Execute the handler; PUSH reads its operand byte and advances ip again
  5. Record trace line / step count

States:
  RUNNING  — initial state, more bytes to execute
  HALTED   — ip reached the end of the program (terminal, success)
  FAULTED  — an instruction could not execute (terminal, error)

Every handler checks its stack-depth precondition before popping
anything, so a faulting instruction never leaves a half-applied stack.
Arithmetic is unsigned 8-bit and wraps silently (see alu.py).

Print and PrintTop emit to a single ordered channel: the value is
written as one line of decimal text (if a writer is set) and then
appended to VM.output. A writer that raises faults the VM with the
stack untouched.
"""

from enum import Enum
from typing import Callable, List, Optional
import logging

from . import alu
from .errors import VMFault, StackUnderflow, IllegalOpcode, TruncatedProgram
from .opcodes import (
    OPCODES,
    OP_PUSH, OP_ADD, OP_SUB, OP_MUL, OP_PRINT, OP_PRINT_TOP,
    OP_DUP, OP_SWAP, OP_DROP,
)

__all__ = ['VM', 'VMState']

logger = logging.getLogger(__name__)


class VMState(Enum):
    RUNNING = 'RUNNING'
    HALTED = 'HALTED'
    FAULTED = 'FAULTED'


class VM:
    """StackVM interpreter.

    The VM owns its stack, instruction pointer and program for its whole
    lifetime. It is not thread-safe; separate instances are independent.

    Usage:
        vm = VM(assemble("PUSH 5\\nPRINT_TOP"))
        vm.run()           # prints "5"
        vm.stack           # [5]
    """

    def __init__(self, program: bytes,
                 writer: Optional[Callable[[str], None]] = print,
                 trace: bool = False):
        self.program: bytes = bytes(program)
        self.stack: List[int] = []
        self.ip: int = 0
        self.state: VMState = VMState.RUNNING
        self.fault: Optional[Exception] = None

        # Observation channel
        self.output: List[int] = []
        self._writer = writer

        # Trace output
        self._trace = trace
        self.trace_output: List[str] = []

        self.steps: int = 0
        self._op_ip: int = 0  # offset of the opcode being executed

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> VMState:
        """Execute one instruction and return the resulting state.

        Raises the VMFault if the instruction faults; an exception from the
        writer also faults the VM and propagates. A halted VM stays
        halted; stepping a faulted VM raises the original fault again.
        """
        if self.state is VMState.HALTED:
            return self.state
        if self.state is VMState.FAULTED:
            raise self.fault

        if self.ip >= len(self.program):
            self.state = VMState.HALTED
            logger.debug(f"Halted after {self.steps} steps, stack={self.stack}")
            return self.state

        # Fetch
        self._op_ip = self.ip
        code = self.program[self.ip]
        self.ip += 1

        # Decode + execute
        try:
            handler = self._dispatch.get(code)
            if handler is None:
                raise IllegalOpcode(f"Unknown opcode 0x{code:02X}", self._op_ip, code)
            handler()
        except Exception as e:
            self.state = VMState.FAULTED
            self.fault = e
            logger.debug(f"Faulted after {self.steps} steps: {e!r}")
            raise

        self.steps += 1
        if self._trace:
            self.trace_output.append(
                f"{self._op_ip:04X}: {OPCODES[code].mnemonic:<9s} {self.stack}"
            )
        return self.state

    def run(self) -> VMState:
        """Run until the program ends. Returns HALTED or raises the fault."""
        while self.state is VMState.RUNNING:
            self.step()
        return self.state

    def stack_report(self) -> str:
        """Final state line, bottom of stack first."""
        return f"Stack after execution: {self.stack}"

    # ══════════════════════════════════════════════
    # Helpers
    # ══════════════════════════════════════════════

    def _require(self, depth: int, mnem: str):
        """Fault unless the stack holds at least depth values."""
        if len(self.stack) < depth:
            raise StackUnderflow(
                f"Stack underflow: {mnem} requires {depth} stack element"
                f"{'s' if depth != 1 else ''}, have {len(self.stack)}",
                self._op_ip, self.program[self._op_ip],
            )

    def _emit(self, value: int):
        if self._writer is not None:
            self._writer(f"{value}")
        self.output.append(value)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> dict:
        """Build opcode → handler dispatch table."""
        return {
            OP_PUSH:      self._op_push,
            OP_ADD:       self._op_add,
            OP_SUB:       self._op_sub,
            OP_MUL:       self._op_mul,
            OP_PRINT:     self._op_print,
            OP_PRINT_TOP: self._op_print_top,
            OP_DUP:       self._op_dup,
            OP_SWAP:      self._op_swap,
            OP_DROP:      self._op_drop,
        }

    def _op_push(self):
        if self.ip >= len(self.program):
            raise TruncatedProgram("Truncated program: PUSH missing operand byte",
                                   self._op_ip, OP_PUSH)
        value = self.program[self.ip]
        self.ip += 1
        self.stack.append(value)

    def _binary(self, mnem: str, fn):
        self._require(2, mnem)
        b = self.stack.pop()
        a = self.stack.pop()
        self.stack.append(fn(a, b))

    def _op_add(self):
        self._binary('ADD', alu.add8)

    def _op_sub(self):
        self._binary('SUB', alu.sub8)

    def _op_mul(self):
        self._binary('MUL', alu.mul8)

    def _op_print(self):
        self._require(1, 'PRINT')
        self._emit(self.stack[-1])
        self.stack.pop()

    def _op_print_top(self):
        self._require(1, 'PRINT_TOP')
        self._emit(self.stack[-1])

    def _op_dup(self):
        self._require(1, 'DUP')
        self.stack.append(self.stack[-1])

    def _op_swap(self):
        """(a, b) → (b, a), b was on top."""
        self._require(2, 'SWAP')
        b = self.stack.pop()
        a = self.stack.pop()
        self.stack.append(b)
        self.stack.append(a)

    def _op_drop(self):
        self._require(1, 'DROP')
        self.stack.pop()
