"""
StackVM ALU — unsigned 8-bit wraparound arithmetic.

All results are reduced modulo 256. Overflow and underflow wrap silently:
    add8(250, 10) == 4
    sub8(3, 5)    == 254
    mul8(20, 20)  == 144
There are no flags; the VM has no condition codes.
"""

BYTE_MASK = 0xFF


def add8(a: int, b: int) -> int:
    """a + b mod 256."""
    return (a + b) & BYTE_MASK


def sub8(a: int, b: int) -> int:
    """a - b mod 256. Python's & on a negative int gives the two's complement byte."""
    return (a - b) & BYTE_MASK


def mul8(a: int, b: int) -> int:
    return (a * b) & BYTE_MASK
