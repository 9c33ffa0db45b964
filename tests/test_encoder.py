# =============================================================================
# test_encoder.py - Word Encoder Tests
# =============================================================================
# Tests for packing statements into words, range checks, unpacking and
# hex rendering.
# =============================================================================

import pytest

from isasm.assembler.encoder import (
    DEFAULT_LAYOUT,
    EncodedWord,
    Encoder,
    WordLayout,
    render_hex,
    unpack,
)
from isasm.assembler.parser import parse_line
from isasm.assembler.resolver import AddressingModeResolver
from isasm.errors import AddressingModeError, AssemblySyntaxError, ConfigError, EncodingError
from isasm.isa import AddressingMode


def encode(line, isa, layout=DEFAULT_LAYOUT):
    statement = parse_line(line)
    definition, mode = AddressingModeResolver(isa).resolve(statement)
    return Encoder(layout).encode(statement, definition, mode)


# =============================================================================
# Layout
# =============================================================================

class TestWordLayout:
    """Test field widths and positions."""

    def test_default_layout(self):
        layout = DEFAULT_LAYOUT
        assert layout.word_bits == 32
        assert layout.hex_digits == 8
        assert layout.opcode_shift == 26
        assert layout.mode_shift == 24
        assert layout.rz_shift == 20
        assert layout.rx_shift == 16

    def test_odd_width_rounds_up_hex_digits(self):
        layout = WordLayout(opcode_bits=5, mode_bits=2, register_bits=3, value_bits=8)
        assert layout.word_bits == 21
        assert layout.hex_digits == 6

    def test_mode_field_too_narrow(self):
        with pytest.raises(ConfigError):
            WordLayout(mode_bits=1)

    def test_zero_width_rejected(self):
        with pytest.raises(ConfigError):
            WordLayout(value_bits=0)


# =============================================================================
# Field Packing
# =============================================================================

class TestEncoding:
    """Test field placement in the word."""

    def test_inherent(self, isa):
        word = encode("nop", isa)
        assert word.value == 0
        assert word.to_hex() == "00000000"

    def test_register_immediate(self, isa):
        assert encode("add r1 #1", isa).to_hex() == "0d100001"

    def test_two_registers(self, isa):
        assert encode("add r1 r1", isa).to_hex() == "0e110000"
        assert encode("or r2 r1", isa).to_hex() == "0a210000"

    def test_immediate_zero(self, isa):
        assert encode("and r1 #0", isa).to_hex() == "05100000"

    def test_direct(self, full_isa):
        fields = unpack(encode("ldr r3 $0x1234", full_isa))
        assert fields.opcode == 0x10
        assert fields.mode == AddressingMode.DIRECT
        assert fields.rz == 3
        assert fields.rx == 0
        assert fields.value == 0x1234

    def test_single_immediate(self, full_isa):
        fields = unpack(encode("jmp #200", full_isa))
        assert (fields.rz, fields.rx, fields.value) == (0, 0, 200)

    def test_single_register_goes_to_rz(self, full_isa):
        fields = unpack(encode("jmp r9", full_isa))
        assert fields.mode == AddressingMode.REGISTER
        assert (fields.rz, fields.rx, fields.value) == (9, 0, 0)

    def test_word_carries_location(self, isa):
        statement = parse_line("nop", line_number=12, filename="p.asm")
        definition, mode = AddressingModeResolver(isa).resolve(statement)
        word = Encoder().encode(statement, definition, mode)
        assert word.location.line == 12
        assert word.width == 32

    def test_refuses_unpermitted_mode(self, isa):
        """The encoder never emits a word for a mode the entry forbids."""
        statement = parse_line("or r1 #1")
        with pytest.raises(AddressingModeError):
            Encoder().encode(statement, isa.lookup("or"), AddressingMode.IMMEDIATE)

    @pytest.mark.parametrize("line, mode", [
        ("ldr r1 #5", AddressingMode.REGISTER),
        ("max r1 #5", AddressingMode.INHERENT),
        ("max", AddressingMode.IMMEDIATE),
        ("max r1 r2", AddressingMode.DIRECT),
    ])
    def test_refuses_mode_not_matching_operands(self, full_isa, line, mode):
        statement = parse_line(line)
        definition = full_isa.lookup(statement.mnemonic)
        with pytest.raises(AddressingModeError) as exc_info:
            Encoder().encode(statement, definition, mode)
        assert f"not {mode.label}" in str(exc_info.value)

    def test_bad_shape_rejected(self, full_isa):
        statement = parse_line("max #1 #2")
        with pytest.raises(AssemblySyntaxError):
            Encoder().encode(statement, full_isa.lookup("max"), AddressingMode.IMMEDIATE)

    def test_custom_layout(self, isa):
        layout = WordLayout(opcode_bits=8, mode_bits=2, register_bits=3, value_bits=3)
        word = encode("add r1 #5", isa, layout)
        assert word.width == 19
        fields = unpack(word, layout)
        assert (fields.opcode, fields.mode, fields.rz, fields.value) == (
            3, AddressingMode.IMMEDIATE, 1, 5,
        )
        assert len(word.to_hex()) == 5


# =============================================================================
# Range Checks
# =============================================================================

class TestRangeChecks:
    """Out-of-range values are rejected, never truncated."""

    def test_largest_values_fit(self, full_isa):
        fields = unpack(encode("ldr r15 #65535", full_isa))
        assert fields.rz == 15
        assert fields.value == 0xFFFF

    def test_immediate_too_large(self, full_isa):
        with pytest.raises(EncodingError) as exc_info:
            encode("ldr r1 #65536", full_isa)
        err = exc_info.value
        assert err.field_name == "immediate value"
        assert err.value == 65536
        assert err.bits == 16
        assert err.token == "#65536"

    def test_direct_too_large(self, full_isa):
        with pytest.raises(EncodingError) as exc_info:
            encode("str $0x10000", full_isa)
        assert exc_info.value.field_name == "direct address"

    def test_destination_register_too_large(self, isa):
        with pytest.raises(EncodingError) as exc_info:
            encode("add r16 #1", isa)
        assert exc_info.value.field_name == "register index"
        assert "'r16' does not fit in 4 bits" in str(exc_info.value)

    def test_source_register_too_large(self, isa):
        with pytest.raises(EncodingError) as exc_info:
            encode("or r1 r99", isa)
        assert exc_info.value.location.column == 7

    def test_narrow_layout(self, isa):
        layout = WordLayout(opcode_bits=6, mode_bits=2, register_bits=2, value_bits=4)
        with pytest.raises(EncodingError):
            encode("add r1 #16", isa, layout)
        with pytest.raises(EncodingError):
            encode("add r4 #1", isa, layout)


# =============================================================================
# Negative Literals
# =============================================================================

class TestNegativeValues:
    """Negative immediates and addresses use two's complement."""

    def test_minus_one(self, isa):
        word = encode("add r1 #-1", isa)
        assert word.to_hex() == "0d10ffff"
        assert unpack(word, signed=True).value == -1

    def test_most_negative_fits(self, full_isa):
        word = encode("ldr r1 #-32768", full_isa)
        assert unpack(word).value == 0x8000
        assert unpack(word, signed=True).value == -32768

    def test_negative_direct(self, full_isa):
        assert unpack(encode("str $-2", full_isa), signed=True).value == -2

    def test_below_signed_range(self, full_isa):
        with pytest.raises(EncodingError) as exc_info:
            encode("ldr r1 #-32769", full_isa)
        err = exc_info.value
        assert err.minimum == -32768
        assert "valid immediate value values are -32768 to 65535" in str(err)

    def test_narrow_value_field(self, isa):
        layout = WordLayout(value_bits=4)
        assert unpack(encode("add r1 #-8", isa, layout), layout, signed=True).value == -8
        with pytest.raises(EncodingError):
            encode("add r1 #-9", isa, layout)

    @pytest.mark.parametrize("value", [-32768, -300, -1, 0, 1, 32767])
    def test_signed_values_recovered(self, full_isa, value):
        assert unpack(encode(f"ldr r2 #{value}", full_isa), signed=True).value == value

    def test_signed_unpack_leaves_registers_alone(self, full_isa):
        fields = unpack(encode("ldr r15 #-1", full_isa), signed=True)
        assert fields.rz == 15


# =============================================================================
# Unpacking Properties
# =============================================================================

class TestUnpack:
    """Encoded fields come back unchanged."""

    @pytest.mark.parametrize("value", [0, 1, 0x7F, 0x8000, 0xFFFF])
    def test_immediate_values_recovered(self, full_isa, value):
        assert unpack(encode(f"ldr r2 #{value}", full_isa)).value == value

    @pytest.mark.parametrize("rz, rx", [(0, 15), (15, 0), (7, 8)])
    def test_registers_recovered(self, full_isa, rz, rx):
        fields = unpack(encode(f"ldr r{rz} r{rx}", full_isa))
        assert (fields.rz, fields.rx) == (rz, rx)

    def test_opcode_and_mode_match_definition(self, full_isa):
        samples = {
            AddressingMode.INHERENT: "max",
            AddressingMode.IMMEDIATE: "max r1 #1",
            AddressingMode.REGISTER: "max r1 r2",
            AddressingMode.DIRECT: "max r1 $1",
        }
        for mode, line in samples.items():
            fields = unpack(encode(line, full_isa))
            assert fields.opcode == 0x3F
            assert fields.mode == mode

    def test_unpack_plain_int(self):
        assert unpack(0x0D100001).opcode == 3


# =============================================================================
# Hex Rendering
# =============================================================================

class TestRenderHex:
    """Test hex text output."""

    def test_one_word_per_line(self):
        words = [EncodedWord(0x0D100001), EncodedWord(0xABCDEF01)]
        assert render_hex(words) == "0d100001\nabcdef01\n"

    def test_empty(self):
        assert render_hex([]) == ""

    def test_fixed_width(self):
        assert EncodedWord(1).to_hex() == "00000001"
        assert EncodedWord(1, width=16).to_hex() == "0001"
