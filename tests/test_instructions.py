"""Tests for instruction execution."""

import pytest
from lc3.console import IOBuffer
from lc3.cpu import Flag
from lc3.errors import ReservedOpcode
from lc3.machine import Machine
from tests import asm

ORIGIN = 0x3000


def machine_with(words, input_text=""):
    m = Machine(console=IOBuffer(input_text))
    m.memory.load(ORIGIN, words)
    return m


class TestOperate:
    """ADD, AND, NOT."""

    def test_add_registers(self):
        """ADD R0, R1, R2 adds register values."""
        m = machine_with([asm.add(0, 1, 2)])
        m.cpu.reg[1] = 5
        m.cpu.reg[2] = 3
        m.step()
        assert m.cpu.reg[0] == 8
        assert m.cpu.cond == Flag.POS

    def test_add_immediate_wraps_to_zero(self):
        """0xFFFF + 1 wraps to 0 and sets ZRO."""
        m = machine_with([asm.add_imm(0, 1, 1)])
        m.cpu.reg[1] = 0xFFFF
        m.step()
        assert m.cpu.reg[0] == 0
        assert m.cpu.cond == Flag.ZRO

    def test_add_negative_immediate(self):
        """imm5 is sign-extended."""
        m = machine_with([asm.add_imm(3, 3, -1)])
        m.cpu.reg[3] = 0
        m.step()
        assert m.cpu.reg[3] == 0xFFFF
        assert m.cpu.cond == Flag.NEG

    def test_and_registers(self):
        m = machine_with([asm.and_(0, 1, 2)])
        m.cpu.reg[1] = 0b1100
        m.cpu.reg[2] = 0b1010
        m.step()
        assert m.cpu.reg[0] == 0b1000
        assert m.cpu.cond == Flag.POS

    def test_and_immediate_clears(self):
        """AND R0, R0, #0 is the usual register clear."""
        m = machine_with([asm.and_imm(0, 0, 0)])
        m.cpu.reg[0] = 0x1234
        m.step()
        assert m.cpu.reg[0] == 0
        assert m.cpu.cond == Flag.ZRO

    def test_and_negative_immediate_keeps_high_bits(self):
        m = machine_with([asm.and_imm(1, 2, -2)])
        m.cpu.reg[2] = 0x8003
        m.step()
        assert m.cpu.reg[1] == 0x8002
        assert m.cpu.cond == Flag.NEG

    def test_not_uses_register_value(self):
        """NOT complements the source value, not its index."""
        m = machine_with([asm.not_(0, 5)])
        m.cpu.reg[5] = 0x00FF
        m.step()
        assert m.cpu.reg[0] == 0xFF00
        assert m.cpu.cond == Flag.NEG

    def test_not_of_all_ones_is_zero(self):
        m = machine_with([asm.not_(2, 2)])
        m.cpu.reg[2] = 0xFFFF
        m.step()
        assert m.cpu.reg[2] == 0
        assert m.cpu.cond == Flag.ZRO


class TestBranches:
    """BR, JMP, JSR, JSRR."""

    def test_br_not_taken(self):
        """BRn with POS set only advances PC by the fetch."""
        m = machine_with([asm.br(5, n=True)])
        m.cpu.cond = Flag.POS
        m.step()
        assert m.cpu.pc == ORIGIN + 1

    def test_br_taken(self):
        m = machine_with([asm.br(5, p=True)])
        m.cpu.cond = Flag.POS
        m.step()
        assert m.cpu.pc == ORIGIN + 1 + 5

    def test_br_backwards(self):
        m = machine_with([asm.br(-1, z=True)])
        m.cpu.cond = Flag.ZRO
        m.step()
        assert m.cpu.pc == ORIGIN

    def test_brnzp_always_taken(self):
        for flag in Flag:
            m = machine_with([asm.br(2, n=True, z=True, p=True)])
            m.cpu.cond = flag
            m.step()
            assert m.cpu.pc == ORIGIN + 3

    def test_br_without_flags_never_taken(self):
        for flag in Flag:
            m = machine_with([asm.br(2)])
            m.cpu.cond = flag
            m.step()
            assert m.cpu.pc == ORIGIN + 1

    def test_branch_does_not_change_flags(self):
        m = machine_with([asm.br(2, n=True)])
        m.cpu.cond = Flag.NEG
        m.step()
        assert m.cpu.cond == Flag.NEG

    def test_jmp(self):
        m = machine_with([asm.jmp(3)])
        m.cpu.reg[3] = 0x4000
        m.step()
        assert m.cpu.pc == 0x4000

    def test_ret(self):
        m = machine_with([asm.ret()])
        m.cpu.reg[7] = 0x3100
        m.step()
        assert m.cpu.pc == 0x3100

    def test_jsr(self):
        """JSR saves the return address in R7 and jumps PC-relative."""
        m = machine_with([asm.jsr(0x10)])
        m.step()
        assert m.cpu.reg[7] == ORIGIN + 1
        assert m.cpu.pc == ORIGIN + 1 + 0x10

    def test_jsr_negative_offset(self):
        m = machine_with([asm.jsr(-0x400)])
        m.step()
        assert m.cpu.pc == ORIGIN + 1 - 0x400

    def test_jsrr(self):
        m = machine_with([asm.jsrr(2)])
        m.cpu.reg[2] = 0x5000
        m.step()
        assert m.cpu.reg[7] == ORIGIN + 1
        assert m.cpu.pc == 0x5000

    def test_jsrr_through_r7(self):
        """JSRR R7 jumps to the old R7 value."""
        m = machine_with([asm.jsrr(7)])
        m.cpu.reg[7] = 0x4444
        m.step()
        assert m.cpu.pc == 0x4444
        assert m.cpu.reg[7] == ORIGIN + 1

    def test_subroutine_call_and_return(self):
        words = [
            asm.jsr(2),          # x3000
            asm.HALT,            # x3001
            0,                   # x3002
            asm.add_imm(0, 0, 7),  # x3003
            asm.ret(),           # x3004
        ]
        m = machine_with(words)
        m.run()
        assert m.cpu.reg[0] == 7
        assert m.halted


class TestLoadsAndStores:
    """LD, LDI, LDR, LEA, ST, STI, STR."""

    def test_ld_negative_offset(self):
        """LD R0, #-2 reads PC - 2 after the fetch."""
        m = machine_with([asm.ld(0, -2)])
        m.memory.write(ORIGIN - 1, 0x1234)
        m.step()
        assert m.cpu.reg[0] == 0x1234
        assert m.cpu.cond == Flag.POS

    def test_ld_sets_neg(self):
        m = machine_with([asm.ld(1, 1), 0, 0x8000])
        m.step()
        assert m.cpu.reg[1] == 0x8000
        assert m.cpu.cond == Flag.NEG

    def test_ldi(self):
        m = machine_with([asm.ldi(2, 0), 0x4000])
        m.memory.write(0x4000, 42)
        m.step()
        assert m.cpu.reg[2] == 42
        assert m.cpu.cond == Flag.POS

    def test_ldr(self):
        m = machine_with([asm.ldr(4, 1, -3)])
        m.cpu.reg[1] = 0x4003
        m.memory.write(0x4000, 0)
        m.step()
        assert m.cpu.reg[4] == 0
        assert m.cpu.cond == Flag.ZRO

    def test_lea_loads_address(self):
        m = machine_with([asm.lea(5, 0x20)])
        m.memory.write(ORIGIN + 0x21, 0x7777)
        m.step()
        assert m.cpu.reg[5] == ORIGIN + 0x21
        assert m.cpu.cond == Flag.POS

    def test_st_uses_register_value(self):
        """ST stores the register's value, not its index."""
        m = machine_with([asm.st(3, 4)])
        m.cpu.reg[3] = 0xBEEF
        m.step()
        assert m.memory.read(ORIGIN + 5) == 0xBEEF

    def test_st_leaves_flags(self):
        m = machine_with([asm.st(0, 1)])
        m.cpu.cond = Flag.NEG
        m.step()
        assert m.cpu.cond == Flag.NEG

    def test_sti(self):
        m = machine_with([asm.sti(1, 0), 0x4100])
        m.cpu.reg[1] = 99
        m.step()
        assert m.memory.read(0x4100) == 99

    def test_str(self):
        m = machine_with([asm.str_(6, 2, 5)])
        m.cpu.reg[6] = 0xABCD
        m.cpu.reg[2] = 0x4000
        m.step()
        assert m.memory.read(0x4005) == 0xABCD

    def test_address_wraps_around(self):
        """Base + offset wraps modulo 65536."""
        m = machine_with([asm.ldr(0, 1, 1)])
        m.cpu.reg[1] = 0xFFFF
        m.memory.write(0x0000, 5)
        m.step()
        assert m.cpu.reg[0] == 5

    def test_lea_store_load_round_trip(self):
        words = [
            asm.lea(0, 5),   # x3000: R0 = x3006
            asm.st(0, 3),    # x3001: mem[x3005] = R0
            asm.ld(1, 2),    # x3002: R1 = mem[x3005]
            asm.HALT,        # x3003
        ]
        m = machine_with(words)
        m.run()
        assert m.cpu.reg[1] == ORIGIN + 6
        assert m.memory.read(ORIGIN + 5) == ORIGIN + 6


class TestReserved:
    """RES and RTI fault."""

    @pytest.mark.parametrize("word", [0xD000, 0x8000, 0xDFFF])
    def test_reserved_opcode_faults(self, word):
        m = machine_with([word, asm.add_imm(0, 0, 1), asm.HALT])
        with pytest.raises(ReservedOpcode) as exc:
            m.run()
        assert m.cpu.reg[0] == 0
        assert m.cpu.pc == ORIGIN + 1
        assert exc.value.addr == ORIGIN
        assert m.steps == 0


class TestFlagInvariant:
    """Exactly one condition flag is set."""

    def test_exactly_one_flag_after_each_step(self):
        words = [
            asm.and_imm(0, 0, 0),
            asm.add_imm(0, 0, -5),
            asm.not_(1, 0),
            asm.add(2, 0, 1),
            asm.lea(3, 0),
            asm.ld(4, -1),
            asm.HALT,
        ]
        m = machine_with(words)
        assert m.cpu.cond == Flag.ZRO
        while not m.halted:
            m.step()
            assert m.cpu.cond in (Flag.POS, Flag.ZRO, Flag.NEG)
            assert bin(int(m.cpu.cond)).count("1") == 1
