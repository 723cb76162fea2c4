"""
StackVM Instruction Set — operations, opcode table, and bytecode encoding.

Canonical numbering (9 opcodes):

    Mnemonic     Op          Opcode   Bytes
    PUSH <n>     Push(n)     $01      [$01, n]
    ADD          Add         $02      [$02]
    SUB          Sub         $03      [$03]
    MUL          Mul         $04      [$04]
    PRINT        Print       $05      [$05]
    PRINT_TOP    PrintTop    $06      [$06]
    DUP          Dup         $07      [$07]
    SWAP         Swap        $08      [$08]
    DROP         Drop        $09      [$09]

Opcode $00 and anything >= $0A are illegal and never produced by the
encoder. The reduced 7-opcode numbering (no MUL/DROP, PRINT=$04 ...) is
not wire-compatible with this table and is not decoded.

Bytecode has no header, length prefix, or magic number. A program is the
plain concatenation of instruction encodings; the only framing is the
fixed width of each opcode.

Mnemonics are case-sensitive. PUSH takes a decimal operand 0-255
(an optional leading '+' is accepted; hex, '-' and '_' are not).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import ClassVar, Dict, Iterable, List, Sequence, Tuple, Type
import re

from .errors import AssemblerError, IllegalOpcode, TruncatedProgram

__all__ = [
    'OP_PUSH', 'OP_ADD', 'OP_SUB', 'OP_MUL', 'OP_PRINT', 'OP_PRINT_TOP',
    'OP_DUP', 'OP_SWAP', 'OP_DROP', 'MAX_OPERAND',
    'Op', 'Push', 'Add', 'Sub', 'Mul', 'Print', 'PrintTop', 'Dup', 'Swap', 'Drop',
    'OPCODES', 'MNEMONICS',
    'opcode', 'encode', 'encode_program', 'parse',
    'decode', 'decode_program', 'disassemble',
]


# ──────────────────────────────────────────────
# Opcode constants
# ──────────────────────────────────────────────

OP_PUSH      = 0x01
OP_ADD       = 0x02
OP_SUB       = 0x03
OP_MUL       = 0x04
OP_PRINT     = 0x05
OP_PRINT_TOP = 0x06
OP_DUP       = 0x07
OP_SWAP      = 0x08
OP_DROP      = 0x09

MAX_OPERAND = 0xFF

_OPERAND_RE = re.compile(r'\+?[0-9]+')


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# OPCODES:   opcode byte -> Op class   (decoder side)
# MNEMONICS: mnemonic    -> Op class   (parser side)

OPCODES: Dict[int, Type['Op']] = {}
MNEMONICS: Dict[str, Type['Op']] = {}


def _op(cls):
    """Register an Op class in both lookup tables."""
    if cls.opcode in OPCODES:
        raise ValueError(f"Duplicate opcode ${cls.opcode:02X} for {cls.mnemonic}")
    OPCODES[cls.opcode] = cls
    MNEMONICS[cls.mnemonic] = cls
    return cls


# ──────────────────────────────────────────────
# Operations
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Op:
    """One instruction. Subclasses fix mnemonic, opcode and encoded width."""
    mnemonic: ClassVar[str] = ''
    opcode: ClassVar[int] = 0x00
    width: ClassVar[int] = 1

    def encode(self) -> bytes:
        return bytes([self.opcode])

    def __str__(self) -> str:
        return self.mnemonic


@_op
@dataclass(frozen=True)
class Push(Op):
    """Push an 8-bit immediate onto the stack."""
    mnemonic: ClassVar[str] = 'PUSH'
    opcode: ClassVar[int] = OP_PUSH
    width: ClassVar[int] = 2

    value: int

    def __post_init__(self):
        if not (0 <= self.value <= MAX_OPERAND):
            raise ValueError(f"PUSH value must be 0-{MAX_OPERAND}, got {self.value}")

    def encode(self) -> bytes:
        return bytes([self.opcode, self.value])

    def __str__(self) -> str:
        return f"{self.mnemonic} {self.value}"


@_op
@dataclass(frozen=True)
class Add(Op):
    """Pop b, pop a, push (a + b) mod 256."""
    mnemonic: ClassVar[str] = 'ADD'
    opcode: ClassVar[int] = OP_ADD


@_op
@dataclass(frozen=True)
class Sub(Op):
    """Pop b, pop a, push (a - b) mod 256."""
    mnemonic: ClassVar[str] = 'SUB'
    opcode: ClassVar[int] = OP_SUB


@_op
@dataclass(frozen=True)
class Mul(Op):
    """Pop b, pop a, push (a * b) mod 256."""
    mnemonic: ClassVar[str] = 'MUL'
    opcode: ClassVar[int] = OP_MUL


@_op
@dataclass(frozen=True)
class Print(Op):
    """Pop the top value and emit it."""
    mnemonic: ClassVar[str] = 'PRINT'
    opcode: ClassVar[int] = OP_PRINT


@_op
@dataclass(frozen=True)
class PrintTop(Op):
    """Emit the top value without popping it."""
    mnemonic: ClassVar[str] = 'PRINT_TOP'
    opcode: ClassVar[int] = OP_PRINT_TOP


@_op
@dataclass(frozen=True)
class Dup(Op):
    mnemonic: ClassVar[str] = 'DUP'
    opcode: ClassVar[int] = OP_DUP


@_op
@dataclass(frozen=True)
class Swap(Op):
    mnemonic: ClassVar[str] = 'SWAP'
    opcode: ClassVar[int] = OP_SWAP


@_op
@dataclass(frozen=True)
class Drop(Op):
    mnemonic: ClassVar[str] = 'DROP'
    opcode: ClassVar[int] = OP_DROP


# ──────────────────────────────────────────────
# Encoding (Op -> bytes)
# ──────────────────────────────────────────────

def opcode(op: Op) -> int:
    """Return the opcode byte for an operation."""
    return op.opcode


def encode(op: Op) -> bytes:
    """Encode one operation: PUSH is [opcode, value], everything else [opcode]."""
    return op.encode()


def encode_program(ops: Iterable[Op]) -> bytes:
    """Concatenate the encodings of a sequence of operations."""
    return b''.join(op.encode() for op in ops)


# ──────────────────────────────────────────────
# Parsing (mnemonic tokens -> Op)
# ──────────────────────────────────────────────

def _parse_operand(text: str) -> int:
    """Parse a PUSH operand as an unsigned 8-bit decimal value."""
    if not _OPERAND_RE.fullmatch(text):
        raise AssemblerError(f"Expected an 8-bit number, got '{text}'")
    digits = text.lstrip('+').lstrip('0') or '0'
    if len(digits) > 3:
        raise AssemblerError(f"Operand out of range 0-{MAX_OPERAND}: {len(digits)}-digit value")
    value = int(digits)
    if value > MAX_OPERAND:
        raise AssemblerError(f"Operand out of range 0-{MAX_OPERAND}: {value}")
    return value


def parse(tokens: Sequence[str]) -> Op:
    """Match a whitespace-split instruction against the mnemonic table.

    Raises AssemblerError on an unknown mnemonic, the wrong number of
    tokens, or a bad PUSH operand.
    """
    tokens = list(tokens)
    if not tokens:
        raise AssemblerError("Empty instruction")

    mnem, args = tokens[0], tokens[1:]
    cls = MNEMONICS.get(mnem)
    if cls is None:
        raise AssemblerError(f"Unknown or malformed instruction: {tokens}")

    expected = cls.width - 1
    if len(args) != expected:
        raise AssemblerError(
            f"{mnem} takes {expected} operand{'s' if expected != 1 else ''}, got {len(args)}"
        )

    if cls is Push:
        return Push(_parse_operand(args[0]))
    return cls()


# ──────────────────────────────────────────────
# Decoding (bytes -> Op)
# ──────────────────────────────────────────────

def decode(data: bytes, offset: int = 0) -> Tuple[Op, int]:
    """Decode the instruction at offset.

    Returns (op, next_offset). Raises IllegalOpcode for an undefined
    opcode byte and TruncatedProgram when PUSH has no operand byte.
    """
    if offset >= len(data):
        raise TruncatedProgram(f"No instruction at offset {offset}, length {len(data)}", offset)

    code = data[offset]
    cls = OPCODES.get(code)
    if cls is None:
        raise IllegalOpcode(f"Unknown opcode 0x{code:02X}", offset, code)

    if cls is Push:
        if offset + 1 >= len(data):
            raise TruncatedProgram("Truncated PUSH: missing operand byte", offset, code)
        return Push(data[offset + 1]), offset + 2

    return cls(), offset + 1


def decode_program(data: bytes) -> List[Op]:
    """Decode a whole program into its list of operations."""
    ops = []
    offset = 0
    while offset < len(data):
        op, offset = decode(data, offset)
        ops.append(op)
    return ops


def disassemble(data: bytes) -> List[str]:
    """Return one "OFFS  BYTES  MNEMONIC" line per instruction."""
    lines = []
    offset = 0
    while offset < len(data):
        op, next_offset = decode(data, offset)
        hex_str = ' '.join(f'{b:02X}' for b in data[offset:next_offset])
        lines.append(f"{offset:04X}  {hex_str:<6}  {op}")
        offset = next_offset
    return lines
