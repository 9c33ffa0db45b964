"""
Shared fixtures for the isasm test suite.
"""

import pytest

from isasm.isa import InstructionSetModel, parse_instruction_set


# Instruction table used across the suite
SCENARIO_CONFIG = """
[nop]
opcode = 0
inh = true

[add]
opcode = 3
reg = true
imm = true

[or]
opcode = 2
reg = true

[and]
opcode = 1
imm = true
reg = true
"""

SCENARIO_SOURCE = """\
nop
add r1 #1
add r1 #1
add r1 r1
or r2 r1
and r1 #0
"""

SCENARIO_HEX = """\
00000000
0d100001
0d100001
0e110000
0a210000
05100000
"""


@pytest.fixture
def isa() -> InstructionSetModel:
    """The four-instruction set from the reference scenario."""
    return parse_instruction_set(SCENARIO_CONFIG, source="scenario.toml")


@pytest.fixture
def full_isa() -> InstructionSetModel:
    """An instruction set exercising every addressing mode."""
    return InstructionSetModel.build({
        "nop": {"opcode": 0, "inh": True},
        "ldr": {"opcode": 0x10, "imm": True, "reg": True, "dir": True},
        "str": {"opcode": 0x11, "dir": True},
        "jmp": {"opcode": 0x18, "imm": True, "reg": True, "args": 1},
        "max": {"opcode": 0x3F, "inh": True, "imm": True, "reg": True, "dir": True},
    })


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "scenario.toml"
    path.write_text(SCENARIO_CONFIG)
    return path


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "prog.asm"
    path.write_text(SCENARIO_SOURCE)
    return path


@pytest.fixture
def scenario_source() -> str:
    return SCENARIO_SOURCE


@pytest.fixture
def scenario_hex() -> str:
    return SCENARIO_HEX
