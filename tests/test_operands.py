import pytest

from sh4Sim import operands
from sh4Sim.errors import CatalogError

def test_normalize_collapses_spacing_and_case():
    assert operands.normalize("  MOV.L   @ R1 ,  R2 ") == "mov.l @r1,r2"
    assert operands.normalize("mov.b @( 4 , R3 ),R0") == "mov.b @(4,r3),r0"
    assert operands.normalize("FMAC\tFR0, FR8,FR9") == "fmac fr0,fr8,fr9"

def test_variants_counts():
    assert len(operands.variants("Rn")) == 16
    assert len(operands.variants("Rm_BANK")) == 8
    assert len(operands.variants("#imm")) == 384
    assert operands.variants("#imm")[0] == "#-128"
    assert len(operands.variants("@(disp,GBR)")) == 256
    assert len(operands.variants("@(disp4,Rm)")) == 64 * 16
    assert operands.variants("DRn") == [f"DR{i}" for i in range(0, 16, 2)]
    assert operands.variants("FVm") == ["FV0", "FV4", "FV8", "FV12"]

def test_unknown_placeholder_is_literal():
    assert operands.variants("FPUL") == ["FPUL"]
    assert operands.variants("@(R0,GBR)") == ["@(R0,GBR)"]

def test_variant_key():
    assert operands.variant_key(("MOV.L", "@R1", "R2")) == "mov.l @r1,r2"
    assert operands.variant_key(("NOP",)) == "nop"

def test_register_extractors():
    asm = ("MOV.L", "@Rm+", "Rn")
    concrete = ("MOV.L", "@R4+", "R5")
    assert operands.rm(asm, concrete) == ["R4"]
    assert operands.rn(asm, concrete) == ["R5"]
    assert operands.rn(("MOV.L", "Rm", "@-Rn"), ("MOV.L", "R1", "@-R15")) == ["R15"]

def test_indexed_and_displacement_extractors():
    assert operands.at_r0n(("MOV.B", "Rm", "@(R0,Rn)"), ("MOV.B", "R1", "@(R0,R7)")) == ["R0", "R7"]
    assert operands.at_d4rm(("MOV.L", "@(disp4,Rm)", "Rn"), ("MOV.L", "@(12,R3)", "R0")) == ["R3"]

def test_wide_fp_extractors():
    assert operands.dm(("FADD", "DRm", "DRn"), ("FADD", "DR4", "DR6")) == ["FR4", "FR5"]
    assert operands.xdn(("FMOV", "@Rm", "XDn"), ("FMOV", "@R1", "XD14")) == ["XF14", "XF15"]
    assert operands.fvn(("FIPR", "FVm", "FVn"), ("FIPR", "FV0", "FV4")) == ["FR4", "FR5", "FR6", "FR7"]
    assert len(operands.xmtrx(None, None)) == 16

def test_registers_combinator_concatenates_specs():
    extract = operands.registers(operands.rm, "SR", [operands.rn, "T"])
    asm = ("ADDC", "Rm", "Rn")
    assert extract(asm, ("ADDC", "R1", "R2")) == ["R1", "SR", "R2", "T"]

def test_missing_part_is_a_catalog_error():
    with pytest.raises(CatalogError):
        operands.rm(("NOP",), ("NOP",))
