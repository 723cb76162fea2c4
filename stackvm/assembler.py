"""
StackVM Assembler — mnemonic text to bytecode.

Input:  Assembly text, one instruction per line
Output: Flat bytecode (bytes), plus an optional listing

Line format:
    MNEMONIC [OPERAND]

Tokens are separated by any run of whitespace. A line with no tokens is
skipped. There are no labels, no directives, and no comment syntax, so
the assembler is single-pass: each line is parsed and encoded in order
and its bytes are appended to the output.

Assembly is all-or-nothing: the first malformed line raises
AssemblerError carrying its 1-based line number and text, and no
bytecode is returned.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional
import logging
import re

from .errors import AssemblerError
from .opcodes import Op, parse

__all__ = ['Assembler', 'AssemblerError', 'AsmLine', 'assemble']

logger = logging.getLogger(__name__)

# Unicode whitespace minus the \x1c-\x1f separators that str.split() also breaks on
_WS_RE = re.compile(r'[^\S\x1c-\x1f]+')


# ──────────────────────────────────────────────
# Line Parser
# ──────────────────────────────────────────────

@dataclass
class AsmLine:
    """One source line and what it assembled to."""
    line_num: int = 0
    raw: str = ""
    tokens: List[str] = field(default_factory=list)
    op: Optional[Op] = None
    offset: int = 0
    data: bytes = b''


def _parse_line(line: str, line_num: int) -> AsmLine:
    """Tokenize one line and parse it into an Op (blank lines keep op=None)."""
    result = AsmLine(line_num=line_num, raw=line, tokens=[t for t in _WS_RE.split(line) if t])
    if not result.tokens:
        return result

    try:
        result.op = parse(result.tokens)
    except AssemblerError as e:
        raise AssemblerError(e.message, line_num, line.strip()) from e
    return result


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

class Assembler:
    """Single-pass StackVM assembler.

    Usage:
        asm = Assembler()
        bytecode = asm.assemble(source_text)
        print(asm.get_listing())
    """

    def __init__(self):
        self.binary: bytes = b''            # Assembled bytecode
        self._lines: List[AsmLine] = []     # Parsed lines, blank ones included

    def assemble(self, source: str) -> bytes:
        """Assemble source text into bytecode.

        Raises AssemblerError on the first malformed line. On error the
        previous result (if any) is discarded and binary is left empty.
        """
        self.binary = b''
        self._lines = []

        output = bytearray()
        lines = []
        for i, raw in enumerate(source.split('\n'), 1):
            line = _parse_line(raw, i)
            if line.op is not None:
                line.offset = len(output)
                line.data = line.op.encode()
                output.extend(line.data)
            lines.append(line)

        self._lines = lines
        self.binary = bytes(output)
        logger.debug(f"Assembled {len(lines)} lines -> {len(self.binary)} bytes")
        return self.binary

    @property
    def ops(self) -> List[Op]:
        """Operations in source order, blank lines dropped."""
        return [line.op for line in self._lines if line.op is not None]

    def get_listing(self) -> str:
        """Return a human-readable listing showing offset, bytes, and source."""
        lines = [f"{'OFFS':>4}  {'BYTES':<6}  SOURCE", "-" * 40]
        for asmline in self._lines:
            if asmline.op is None:
                continue
            hex_str = ' '.join(f'{b:02X}' for b in asmline.data)
            lines.append(f"{asmline.offset:04X}  {hex_str:<6}  {asmline.raw.strip()}")
        return '\n'.join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> bytes:
    """Assemble source text, return bytecode."""
    return Assembler().assemble(source)
