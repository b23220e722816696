"""
Pipeline timing patterns from the SH-4 hardware manual's execution-pattern figures.

Each pattern is one row per micro-operation. Row 0 is issued; every other row
is started by a kick from an earlier row. See pipeline.parse_step for the notation.
"""
from typing import Dict

from .errors import CatalogError
from .pipeline import Pattern, parse_pattern

PATTERNS: Dict[int, Pattern] = {
    # 1-step operation: 1 issue cycle
    # EXT[SU].[BW], MOV, MOV#, MOVA, MOVT, SWAP.[BW], XTRCT, ADD*, CMP*,
    # DIV*, DT, NEG*, SUB*, AND, AND#, NOT, OR, OR#, TST, TST#, XOR, XOR#,
    # ROT*, SHA*, SHL*, BF*, BT*, BRA, NOP, CLRS, CLRT, SETS, SETT,
    # LDS to FPUL, STS from FPUL/FPSCR, FLDI0, FLDI1, FMOV, FLDS, FSTS,
    # single-/double-precision FABS/FNEG
    1: parse_pattern([
        "I D EX NA S",
    ]),

    # Load/store: 1 issue cycle
    # MOV.[BWL], FMOV*@, LDS.L to FPUL, LDTLB, PREF, STS.L from FPUL/FPSCR
    2: parse_pattern([
        "I D EX MA S",
    ]),

    # GBR-based load/store: 1 issue cycle
    # MOV.[BWL]@(d,GBR)
    3: parse_pattern([
        "I D SX MA S",
    ]),

    # JMP, RTS, BRAF: 2 issue cycles
    4: parse_pattern([
        "I D:L EX:K1 NA S:R",
        "D:L EX NA S",
    ]),

    # TST.B: 3 issue cycles
    5: parse_pattern([
        "I D:L SX:K1 MA S",
        "D:L SX:K2 NA S",
        "D:L SX MA S",
    ]),

    # AND.B, OR.B, XOR.B: 4 issue cycles
    6: parse_pattern([
        "I D:L SX:K1 MA S",
        "D:L SX:K2 NA S",
        "D:L SX:K3 NA S",
        "D:L SX MA S",
    ]),

    # TAS.B: 5 issue cycles
    7: parse_pattern([
        "I D:L EX:K1 MA S:R",
        "D:L EX:K2 NA S",
        "D:L EX:K3 NA S",
        "D:L EX:K4 NA S",
        "D:L EX MA S",
    ]),

    # RTE: 5 issue cycles
    8: parse_pattern([
        "I D EX:K1 NA S",
        "D EX:K2 NA S",
        "D EX:K3 NA S",
        "D EX:K4 NA S",
        "D EX NA S",
    ]),

    # SLEEP: 4 issue cycles
    9: parse_pattern([
        "I D EX:K1 NA S",
        "D EX:K2 NA S",
        "D EX:K3 NA S",
        "D EX NA S",
    ]),

    # OCBI: 1 issue cycle
    10: parse_pattern([
        "I D EX MA S:K1",
        "MA:LP",
    ]),

    # OCBP, OCBWB: 1 issue cycle
    11: parse_pattern([
        "I D EX MA S:K1",
        "MA:LP MA:LP MA:LP MA:LP",
    ]),

    # MOVCA.L: 1 issue cycle
    12: parse_pattern([
        "I D EX MA S:K1",
        "MA:LP MA:LP MA:LP MA:LP MA:LP MA:LP",
    ]),

    # TRAPA: 7 issue cycles
    13: parse_pattern([
        "I D:K1:L EX NA S",
        "D:L EX:K2 NA S",
        "D:L EX:K3 NA S",
        "D:L EX:K4 NA S",
        "D:L EX:K5 NA S",
        "D:L EX:K6 NA S",
        "D:L EX NA S",
    ]),

    # Single stages that are in waterfall have been merged to a single sequence

    # CR definition: 1 issue cycle: LDC to DBR/Rp_BANK/SSR/SPC/VBR, BSR
    14: parse_pattern([
        "I D EX NA:K1 S:R",
        "SX:LP SX:LP",
    ]),

    # LDC to GBR: 3 issue cycles
    15: parse_pattern([
        "I D:L EX:K1 NA S:R",
        "D:LP SX:K2:LP",
        "D:LP SX:LP",
    ]),

    # LDC to SR: 4 issue cycles
    16: parse_pattern([
        "I D:K1:L EX NA S:R",
        "D:LP SX:K2:LP",
        "D:LP SX:K3:LP",
        "D:LP SX:LP",
    ]),

    # LDC.L to DBR/Rp_BANK/SSR/SPC/VBR: 1 issue cycle
    17: parse_pattern([
        "I D EX MA:K1 S:R",
        "SX:LP SX:LP",
    ]),

    # LDC.L to GBR: 3 issue cycles
    18: parse_pattern([
        "I D:K1:L EX MA S:R",
        "D:LP SX:K2:LP",
        "D:LP SX:LP",
    ]),

    # LDC.L to SR: 4 issue cycles
    19: parse_pattern([
        "I D:K1:L EX MA S:R",
        "D:LP SX:K2:LP",
        "D:LP SX:K3:LP",
        "D:LP SX:LP",
    ]),

    # STC from DBR/GBR/Rp_BANK/SR/SSR/SPC/VBR: 2 issue cycles
    20: parse_pattern([
        "I D:L SX:K1 NA S",
        "D:L SX NA S:R",
    ]),

    # STC.L from SGR: 3 issue cycles
    # Shouldn't there be an MA stage here? -> This looks like plain STC, not STC.L
    21: parse_pattern([
        "I D:L SX:K1 NA S",
        "D:L SX:K2 NA S",
        "D:L SX NA S:R",
    ]),

    # STC.L from DBR/GBR/Rp_BANK/SR/SSR/SPC/VBR: 2 issue cycles
    22: parse_pattern([
        "I D:L SX:K1:R NA S",
        "D:L SX MA S",
    ]),

    # STC.L from SGR: 3 issue cycles
    23: parse_pattern([
        "I D:L SX:K1:R NA S",
        "D:L SX:K2 NA S",
        "D:L SX MA S",
    ]),

    # LDS to PR, JSR, BSRF: 2 issue cycles
    24: parse_pattern([
        "I D EX:K1 NA S:R",
        "D:LP SX:LP SX:LP",
    ]),

    # LDS.L to PR: 2 issue cycles
    25: parse_pattern([
        "I D:L EX:K1 MA S:R",
        "D:LP SX:LP SX:LP",
    ]),

    # STS from PR: 2 issue cycles
    26: parse_pattern([
        "I D:L SX:K1 NA S",
        "D:L SX NA S:R",
    ]),

    # STS.L from PR: 2 issue cycles
    27: parse_pattern([
        "I D:L SX:K1 NA S",
        "D:L SX MA S:R",
    ]),

    # MACH/L definition: 1 issue cycle: CLRMAC, LDS to MACH/L
    28: parse_pattern([
        "I D EX NA:K1 S",
        "F1:LP F1:L F2 FS:R",
    ]),

    # LDS.L to MACH/L: 1 issue cycle
    29: parse_pattern([
        "I D EX MA:K1 S",
        "F1:LP F1 F2 FS:R",
    ]),

    # STS from MACH/L: 1 issue cycle
    30: parse_pattern([
        "I D EX NA S",
    ]),

    # STS.L from MACH/L: 1 issue cycle
    31: parse_pattern([
        "I D EX MA S",
    ]),

    # LDS to FPSCR: 1 issue cycle
    32: parse_pattern([
        "I D EX NA:K1 S:R",
        "F1:LP F1:LP F1:LP",
    ]),

    # LDS.L to FPSCR: 1 issue cycle
    33: parse_pattern([
        "I D EX MA:K1 S:R",
        "F1:LP F1:LP F1:LP",
    ]),

    # Fixed-point multiplication: 2 issue cycles: DMULS.L, DMULU.L, MUL.L, MULS.W, MULU.W
    # The f1 rows only mark multiplier occupancy; they do not contend with F1.
    34: parse_pattern([
        "I D EX:K1 NA S",
        "D:L:K2 EX:K3 NA:K4 S:K5",
        "f1",
        "f1",
        "f1",
        "f1 F2 FS:R",
    ]),

    # MAC.W, MAC.L: 2 issue cycles
    35: parse_pattern([
        "I D:L EX:K1 MA S",
        "D:L:K2 EX:K3 MA:K4 S:K5",
        "f1",
        "f1",
        "f1",
        "f1 F2 FS:R",
    ]),

    # Single-precision floating-point computation: 1 issue cycle
    # FCMP/EQ,FCMP/GT, FADD,FLOAT,FMAC,FMUL,FSUB,FTRC,FRCHG,FSCHG
    36: parse_pattern([
        "I D F1 F2 FS",
    ]),

    # 37 is built by pattern_37()

    # Double-precision floating-point computation 1: 1 issue cycle: FCNVDS, FCNVSD, FLOAT, FTRC
    38: parse_pattern([
        "I D F1:K1:L F2 FS",
        "d F1:L F2 FS:R",
    ]),

    # Double-precision floating-point computation 2: 1 issue cycle: FADD, FMUL, FSUB
    39: parse_pattern([
        "I D F1:K1:L F2 FS",
        "d F1:K2:L F2 FS",
        "d F1:K3:L F2 FS",
        "d F1:K4:L F2 FS",
        "d F1:L F2:K5 FS",
        "F1:L F2 FS:R",
    ]),

    # Double-precision FCMP: 2 issue cycles: FCMP/EQ,FCMP/GT
    40: parse_pattern([
        "I D:L F1:K1:L F2 FS",
        "D:L F1:L F2 FS:R",
    ]),

    # 41 is built by pattern_41()

    # FIPR: 1 issue cycle
    42: parse_pattern([
        "I D F0 F1 F2 FS",
    ]),

    # FTRV: 1 issue cycle
    43: parse_pattern([
        "I D F0:K1 F1 F2 FS",
        "d F0:K2 F1 F2 FS",
        "d F0:K3 F1 F2 FS",
        "d F0 F1 F2 FS:R",
    ]),
}

def _f3_lock_row(f3_locks: int, kick_at: int, kick: int) -> str:
    steps = ["F3:L"] * f3_locks
    steps[kick_at] += f":K{kick}"
    return " ".join(steps)

# fdiv: F3 2 10 F1 11 1
# fsqrt: F3 2 9 F1 10 1
def pattern_37(f3_locks: int) -> Pattern:
    """Single-precision FDIV/FSQRT: 1 issue cycle, F3 locked for f3_locks cycles."""
    if f3_locks not in (9, 10):
        raise CatalogError(f"Unknown f3_locks {f3_locks}")
    return parse_pattern([
        "I D F1:K1 F2 FS",
        _f3_lock_row(f3_locks, f3_locks - 1, 2),
        "F1:L F2 FS:R",
    ])

# fdiv: F3 2 21 F1 20 3
# fsqrt: F3 2 20 F1 19 3
# Hmm, no FS here?
def pattern_41(f3_locks: int) -> Pattern:
    """Double-precision FDIV/FSQRT: 1 issue cycle, F3 locked for f3_locks cycles."""
    if f3_locks not in (20, 21):
        raise CatalogError(f"Unknown f3_locks {f3_locks}")
    return parse_pattern([
        "I D F1:K1 F2 FS",
        "d:K2 F1 F2",
        _f3_lock_row(f3_locks, f3_locks - 2, 3),
        "F1:L F2:K4 F3",
        "F1:L F2:K5 F3",
        "F1:L F2 F3:R",
    ])
