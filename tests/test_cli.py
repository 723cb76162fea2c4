"""
svmkit CLI tests — drive main() with argv and check stdout/stderr/exit code.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import svmkit

EXAMPLES_DIR = os.path.join(os.path.dirname(__file__), "..", "examples")


@pytest.fixture
def src_file(tmp_path):
    def _write(text: str) -> str:
        path = tmp_path / "prog.asm"
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


class TestAsmCommand:
    def test_hex_output(self, src_file, capsys):
        path = src_file("PUSH 5\nPRINT_TOP\nPUSH 10\nADD\nPRINT\n")
        assert svmkit.main(["asm", path]) == 0
        assert capsys.readouterr().out.strip() == "01 05 06 01 0A 02 05"

    def test_listing(self, src_file, capsys):
        path = src_file("PUSH 5\nDROP\n")
        assert svmkit.main(["asm", path, "--listing"]) == 0
        out = capsys.readouterr().out
        assert "0000  01 05   PUSH 5" in out
        assert "0002  09      DROP" in out

    def test_assembly_error(self, src_file, capsys):
        path = src_file("PUSH 1\nPUSH\n")
        assert svmkit.main(["asm", path]) == 1
        err = capsys.readouterr().err
        assert "Assembly error: Line 2:" in err

    def test_missing_file(self, tmp_path, capsys):
        assert svmkit.main(["asm", str(tmp_path / "nope.asm")]) == 1
        assert "File not found" in capsys.readouterr().err


class TestDisasmCommand:
    def test_disasm(self, capsys):
        assert svmkit.main(["disasm", "01 05 06 01 0A 02 05"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert [line.split(None, 1)[0] for line in out] == ["0000", "0002", "0003", "0005", "0006"]
        assert out[0].endswith("PUSH 5")
        assert out[-1].endswith("PRINT")

    def test_bad_hex(self, capsys):
        assert svmkit.main(["disasm", "zz"]) == 1
        assert "Invalid hex" in capsys.readouterr().err

    def test_illegal_opcode(self, capsys):
        assert svmkit.main(["disasm", "0B"]) == 1
        assert "Unknown opcode 0x0B" in capsys.readouterr().err


class TestRunCommand:
    def test_run_source(self, src_file, capsys):
        path = src_file("PUSH 5\nPRINT_TOP\nPUSH 10\nADD\nPRINT\n")
        assert svmkit.main(["run", path]) == 0
        assert capsys.readouterr().out == "5\n15\nStack after execution: []\n"

    def test_run_demo(self, capsys):
        assert svmkit.main(["run", os.path.join(EXAMPLES_DIR, "demo.asm")]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == ["5", "10", "15", "14", "28", "7", "28", "144",
                       "Stack after execution: [7]"]

    def test_run_hex(self, capsys):
        assert svmkit.main(["run", "--hex", "01FA010A0205"]) == 0
        assert capsys.readouterr().out == "4\nStack after execution: []\n"

    def test_run_fault(self, src_file, capsys):
        path = src_file("PUSH 2\nPRINT\nADD\n")
        assert svmkit.main(["run", path]) == 1
        captured = capsys.readouterr()
        assert captured.out == "2\n"
        assert "Execution fault: Stack underflow" in captured.err

    def test_run_truncated_hex(self, capsys):
        assert svmkit.main(["run", "--hex", "01"]) == 1
        assert "Truncated program" in capsys.readouterr().err

    def test_trace_to_stderr(self, src_file, capsys):
        path = src_file("PUSH 1\nDUP\n")
        assert svmkit.main(["run", path, "--trace"]) == 0
        err = capsys.readouterr().err
        assert "0000: PUSH" in err
        assert "0002: DUP" in err

    def test_input_and_hex_are_exclusive(self, src_file, capsys):
        path = src_file("ADD\n")
        assert svmkit.main(["run", path, "--hex", "02"]) == 1
        assert "exactly one of: an input file or --hex" in capsys.readouterr().err
        assert svmkit.main(["run"]) == 1
        assert "exactly one of: an input file or --hex" in capsys.readouterr().err


def test_no_command(capsys):
    assert svmkit.main([]) == 1
