"""
StackVM error hierarchy.

Two families:
  AssemblerError  — translation errors (unknown mnemonic, wrong arity,
                    operand outside 0-255). Raised by parse()/assemble().
  VMFault         — execution faults (stack underflow, illegal opcode,
                    PUSH missing its operand byte). Raised by VM.step()/run().

Both are fatal to the call that raised them. Nothing is retried.
"""

from __future__ import annotations
from typing import Optional

__all__ = [
    'StackVMError', 'AssemblerError',
    'VMFault', 'StackUnderflow', 'IllegalOpcode', 'TruncatedProgram',
]


class StackVMError(Exception):
    """Base class for every error raised by stackvm."""


class AssemblerError(StackVMError):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.message = message
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class VMFault(StackVMError):
    """Raised when the interpreter cannot execute the current instruction.

    ip is the offset of the faulting opcode byte, not the advanced pointer.
    """
    def __init__(self, message: str, ip: int = 0, opcode: Optional[int] = None):
        self.ip = ip
        self.opcode = opcode
        super().__init__(f"{message} (ip=${ip:04X})")


class StackUnderflow(VMFault):
    """Not enough operands on the stack for the current opcode."""


class IllegalOpcode(VMFault):
    """Byte at ip is not one of the defined opcodes."""


class TruncatedProgram(VMFault):
    """PUSH at the end of the program with no operand byte."""
