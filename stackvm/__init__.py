"""
StackVM — a minimal stack-based bytecode virtual machine
========================================================
Mnemonic assembly in, 8-bit stack machine out.

Architecture:
    ┌──────────┐    ┌───────────┐    ┌──────────┐    ┌──────────────┐
    │ asm text │───>│ Assembler │───>│ bytecode │───>│  VM (run)    │──> printed values
    │ (.asm)   │    │  (parse)  │    │ (bytes)  │    │ stack + ip   │    + final stack
    └──────────┘    └───────────┘    └──────────┘    └──────────────┘

    - opcodes.py:   Op classes, opcode table, encode/parse/decode, disassembly
    - assembler.py: Line-by-line translator, listing
    - alu.py:       Wraparound 8-bit arithmetic
    - vm.py:        Fetch/decode/execute loop, faults, trace
    - errors.py:    AssemblerError (translation) / VMFault (execution)
"""

__version__ = "0.1.0"

from .errors import (
    StackVMError, AssemblerError,
    VMFault, StackUnderflow, IllegalOpcode, TruncatedProgram,
)
from .opcodes import (
    Op, Push, Add, Sub, Mul, Print, PrintTop, Dup, Swap, Drop,
    OPCODES, MNEMONICS,
    opcode, encode, encode_program, parse, decode, decode_program, disassemble,
)
from .assembler import Assembler, assemble
from .vm import VM, VMState


def run_source(source: str, *, writer=print, trace: bool = False) -> VM:
    """Assemble and run source text.

    Full pipeline: Assembler -> bytecode -> VM.run().

    Returns the halted VM so callers can inspect stack and output.
    Raises AssemblerError or VMFault.
    """
    vm = VM(assemble(source), writer=writer, trace=trace)
    vm.run()
    return vm
