#!/usr/bin/env python3
"""
svmkit — StackVM assembler / disassembler / runner
==================================================

One CLI for the whole pipeline:
    svmkit asm     — Assemble mnemonic source to bytecode (hex) or a listing
    svmkit disasm  — Disassemble a hex byte string
    svmkit run     — Assemble and execute a program (or raw hex bytecode)

Usage:
    python svmkit.py <command> [options]
    python svmkit.py <command> --help

Examples:
    python svmkit.py asm examples/demo.asm
    python svmkit.py asm examples/demo.asm --listing
    python svmkit.py disasm "01 05 06 01 0A 02 05"
    python svmkit.py run examples/demo.asm --trace
    python svmkit.py run --hex "01 05 05"
"""

import argparse
import logging
import sys

from stackvm import __version__, Assembler, VM, disassemble
from stackvm.errors import AssemblerError, VMFault

logger = logging.getLogger("svmkit")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="svmkit",
        description="StackVM toolkit — assemble, disassemble, run",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  asm        Assemble source to bytecode hex or a listing
  disasm     Disassemble a hex byte string
  run        Assemble and execute, print emitted values and final stack
""",
    )
    parser.add_argument("--version", action="version", version=f"svmkit {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging to stderr")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── asm ──────────────────────────────────────────────────────────────
    p_asm = sub.add_parser("asm", help="Assemble source to bytecode hex or a listing")
    p_asm.add_argument("input", help="Input .asm file")
    p_asm.add_argument("--listing", action="store_true", help="Print listing instead of hex")

    # ── disasm ───────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble a hex byte string")
    p_dis.add_argument("hex", help='Bytecode as hex, e.g. "01 05 06"')

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Assemble and execute a program")
    p_run.add_argument("input", nargs="?", help="Input .asm file")
    p_run.add_argument("--hex", help="Execute raw bytecode given as hex instead")
    p_run.add_argument("--trace", action="store_true",
                       help="Print an instruction trace to stderr")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    handler = COMMANDS[args.command]
    try:
        return handler(args)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except AssemblerError as e:
        print(f"Assembly error: {e}", file=sys.stderr)
        return 1
    except VMFault as e:
        print(f"Execution fault: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _read_source(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _parse_hex(s):
    """Parse a hex byte string, spaces allowed: "01 05" or "0105"."""
    try:
        return bytes.fromhex(s)
    except ValueError:
        raise ValueError(f"Invalid hex bytecode: '{s}'") from None


# ── asm ──────────────────────────────────────────────────────────────────
def cmd_asm(args):
    asm = Assembler()
    asm.assemble(_read_source(args.input))

    if args.listing:
        print(asm.get_listing())
    else:
        print(asm.binary.hex(' ').upper())
    logger.info(f"Assembled {args.input} -> {len(asm.binary)} bytes")
    return 0


# ── disasm ───────────────────────────────────────────────────────────────
def cmd_disasm(args):
    for line in disassemble(_parse_hex(args.hex)):
        print(line)
    return 0


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    if (args.input is None) == (args.hex is None):
        raise ValueError("run takes exactly one of: an input file or --hex")

    if args.hex is not None:
        program = _parse_hex(args.hex)
    else:
        program = Assembler().assemble(_read_source(args.input))

    vm = VM(program, trace=args.trace)
    try:
        vm.run()
    finally:
        if args.trace:
            for line in vm.trace_output:
                print(line, file=sys.stderr)

    print(vm.stack_report())
    logger.info(f"Executed {vm.steps} instructions")
    return 0


COMMANDS = {
    "asm": cmd_asm,
    "disasm": cmd_disasm,
    "run": cmd_run,
}


if __name__ == "__main__":
    sys.exit(main())
