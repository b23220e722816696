import itertools
import logging
from collections import namedtuple
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import CatalogError
from .operands import (RegisterSpec, at_d4rm, at_r0m, at_r0n, dm, dn, fm, fm_at_r0n, fmrn, fn,
                       fnm, fpul, fvm, fvn, none, normalize, r0, r0_at_d4rn, r0gbr, registers,
                       rm, rm_at_d4rn, rm_at_r0n, rm_bank, rmn, rmnsr, rn, rn_bank, rnsr, sr,
                       variant_key, variants, xdm, xdn, xmtrx)
from .patterns import PATTERNS, pattern_37, pattern_41
from .pipeline import Group, Pattern

logger = logging.getLogger(__name__)

Latency = Union[int, Sequence[int], None]

class InstructionDefinition:
    """
    Timing definition of one SH-4 instruction form, as listed in the hardware manual.

    `latency` may be a single value, several values (the maximum is used), or None
    for instructions that never produce a result other instructions wait on.
    The Result flag is placed on construction and the definition is validated.
    """
    def __init__(self, number: int, asm: Sequence[str], group: Group, issue: int,
                 latency: Latency, pattern: Pattern, reads: RegisterSpec, writes: RegisterSpec,
                 note: Optional[str] = None):
        self.number: int = number
        self.asm: Tuple[str, ...] = tuple(asm)
        self.group: Group = group
        self.issue: int = issue
        if latency is None:
            self.latencies: Tuple[int, ...] = ()
        elif isinstance(latency, int):
            self.latencies = (latency,)
        else:
            self.latencies = tuple(latency)
        self.latency: Optional[int] = max(self.latencies) if self.latencies else None
        self.reads = registers(reads)
        self.writes = registers(writes)
        self.note: Optional[str] = note

        self._check_issue(pattern)
        self._check_kicks(pattern)
        # result_row is None when no row ever publishes a result
        self.pattern, self.result_row = self._place_result(pattern)

    @property
    def mnemonic(self) -> str:
        return self.asm[0]

    @property
    def known_approximate(self) -> bool:
        return bool(self.note)

    @property
    def rows(self) -> int:
        return len(self.pattern)

    def _check_issue(self, pattern: Pattern):
        if self.issue > len(pattern):
            raise CatalogError(f"Instruction {self} has issue > pattern length")
        if self.issue == 1:
            return
        unlocked = []
        if len(pattern[0]) < 2 or not pattern[0][1].locks:
            unlocked.append(0)
        unlocked.extend(row for row in range(1, self.issue) if not pattern[row][0].locks)
        if not unlocked:
            return
        if self.known_approximate:
            logger.info("%s has issue %d but rows %s carry no lock (%s)", self, self.issue, unlocked, self.note)
        else:
            raise CatalogError(f"Instruction {self} has issue > 1 but no lock flag in rows {unlocked}")

    def _check_kicks(self, pattern: Pattern):
        kicked = [0] * len(pattern)
        for row_index, row in enumerate(pattern):
            for step in row:
                if step.kick is None:
                    continue
                if not row_index < step.kick < len(pattern):
                    raise CatalogError(f"Instruction {self} row {row_index} kicks invalid row {step.kick}")
                kicked[step.kick] += 1
        for row_index in range(1, len(pattern)):
            if kicked[row_index] != 1:
                raise CatalogError(f"Instruction {self} row {row_index} is kicked {kicked[row_index]} times")

    def _place_result(self, pattern: Pattern) -> Tuple[Pattern, Optional[int]]:
        if self.latency is None:
            return pattern, None
        if len(pattern) == 1:
            row = list(pattern[0])
            index = 1 + self.latency
            if index >= len(row):
                raise CatalogError(f"Latency too high for {self}")
            row[index] = row[index].with_result()
            return (tuple(row),), 0
        for row_index, row in enumerate(pattern):
            if any(step.result for step in row):
                return pattern, row_index
        raise CatalogError(f"No result in pattern for {self}")

    def latency_text(self) -> str:
        return "-" if self.latency is None else str(self.latency)

    def describe(self) -> str:
        text = f"group: {self.group}, issue: {self.issue}, latency: {self.latency_text()}"
        if self.note:
            text += f"\n{self.note}"
        return text

    def __str__(self) -> str:
        if len(self.asm) == 1:
            return self.asm[0]
        return f"{self.asm[0]} {','.join(self.asm[1:])}"

    def __repr__(self) -> str:
        return f"<InstructionDefinition #{self.number} {self} {self.group} issue={self.issue} latency={self.latency}>"

MT, EX, BR, LS, FE, CO = Group.MT, Group.EX, Group.BR, Group.LS, Group.FE, Group.CO
P = PATTERNS
D = InstructionDefinition

# Numbers follow the manual's execution cycle table. The patterns are the manual's
# execution-pattern figures; latency None means the instruction has no result step.
INSTRUCTIONS: List[InstructionDefinition] = [
    # Data transfer instructions
    D(1, ["EXTS.B", "Rm", "Rn"], EX, 1, 1, P[1], rm, rn),
    D(2, ["EXTS.W", "Rm", "Rn"], EX, 1, 1, P[1], rm, rn),
    D(3, ["EXTU.B", "Rm", "Rn"], EX, 1, 1, P[1], rm, rn),
    D(4, ["EXTU.W", "Rm", "Rn"], EX, 1, 1, P[1], rm, rn),
    D(5, ["MOV", "Rm", "Rn"], MT, 1, 0, P[1], rm, rn),
    D(6, ["MOV", "#imm", "Rn"], EX, 1, 1, P[1], none, rn),
    D(7, ["MOVA", "@(disp,PC)", "R0"], EX, 1, 1, P[1], none, r0),
    D(8, ["MOV.W", "@(disp,PC)", "Rn"], LS, 1, 2, P[2], none, rn),
    D(9, ["MOV.L", "@(disp,PC)", "Rn"], LS, 1, 2, P[2], none, rn),
    D(10, ["MOV.B", "@Rm", "Rn"], LS, 1, 2, P[2], rm, rn),
    D(11, ["MOV.W", "@Rm", "Rn"], LS, 1, 2, P[2], rm, rn),
    D(12, ["MOV.L", "@Rm", "Rn"], LS, 1, 2, P[2], rm, rn),
    D(13, ["MOV.B", "@Rm+", "Rn"], LS, 1, (1, 2), P[2], rm, rmn),
    D(14, ["MOV.W", "@Rm+", "Rn"], LS, 1, (1, 2), P[2], rm, rmn),
    D(15, ["MOV.L", "@Rm+", "Rn"], LS, 1, (1, 2), P[2], rm, rmn),
    D(16, ["MOV.B", "@(disp4,Rm)", "R0"], LS, 1, 2, P[2], at_d4rm, r0),
    D(17, ["MOV.W", "@(disp4,Rm)", "R0"], LS, 1, 2, P[2], at_d4rm, r0),
    D(18, ["MOV.L", "@(disp4,Rm)", "Rn"], LS, 1, 2, P[2], at_d4rm, rn),
    D(19, ["MOV.B", "@(R0,Rm)", "Rn"], LS, 1, 2, P[2], at_r0m, rn),
    D(20, ["MOV.W", "@(R0,Rm)", "Rn"], LS, 1, 2, P[2], at_r0m, rn),
    D(21, ["MOV.L", "@(R0,Rm)", "Rn"], LS, 1, 2, P[2], at_r0m, rn),
    D(22, ["MOV.B", "@(disp,GBR)", "R0"], LS, 1, 2, P[3], "GBR", r0),
    D(23, ["MOV.W", "@(disp,GBR)", "R0"], LS, 1, 2, P[3], "GBR", r0),
    D(24, ["MOV.L", "@(disp,GBR)", "R0"], LS, 1, 2, P[3], "GBR", r0),
    D(25, ["MOV.B", "Rm", "@Rn"], LS, 1, 1, P[2], rmn, none),
    D(26, ["MOV.W", "Rm", "@Rn"], LS, 1, 1, P[2], rmn, none),
    D(27, ["MOV.L", "Rm", "@Rn"], LS, 1, 1, P[2], rmn, none),
    D(28, ["MOV.B", "Rm", "@-Rn"], LS, 1, (1, 1), P[2], rmn, rn),
    D(29, ["MOV.W", "Rm", "@-Rn"], LS, 1, (1, 1), P[2], rmn, rn),
    D(30, ["MOV.L", "Rm", "@-Rn"], LS, 1, (1, 1), P[2], rmn, rn),
    D(31, ["MOV.B", "R0", "@(disp4,Rn)"], LS, 1, 1, P[2], r0_at_d4rn, none),
    D(32, ["MOV.W", "R0", "@(disp4,Rn)"], LS, 1, 1, P[2], r0_at_d4rn, none),
    D(33, ["MOV.L", "Rm", "@(disp4,Rn)"], LS, 1, 1, P[2], rm_at_d4rn, none),
    D(34, ["MOV.B", "Rm", "@(R0,Rn)"], LS, 1, 1, P[2], rm_at_r0n, none),
    D(35, ["MOV.W", "Rm", "@(R0,Rn)"], LS, 1, 1, P[2], rm_at_r0n, none),
    D(36, ["MOV.L", "Rm", "@(R0,Rn)"], LS, 1, 1, P[2], rm_at_r0n, none),
    D(37, ["MOV.B", "R0", "@(disp,GBR)"], LS, 1, 1, P[3], r0gbr, none),
    D(38, ["MOV.W", "R0", "@(disp,GBR)"], LS, 1, 1, P[3], r0gbr, none),
    D(39, ["MOV.L", "R0", "@(disp,GBR)"], LS, 1, 1, P[3], r0gbr, none),
    D(40, ["MOVCA.L", "R0", "@Rn"], LS, 1, None, P[12], [r0, rn], none,
      note="latency 3-7 depends on the store buffer"),
    D(41, ["MOVT", "Rn"], EX, 1, 1, P[1], sr, rn),
    D(42, ["OCBI", "@Rn"], LS, 1, None, P[10], rn, none, note="latency 1-2"),
    D(43, ["OCBP", "@Rn"], LS, 1, None, P[11], rn, none, note="latency 1-5"),
    D(44, ["OCBWB", "@Rn"], LS, 1, None, P[11], rn, none, note="latency 1-5"),
    D(45, ["PREF", "@Rn"], LS, 1, 1, P[2], rn, none),
    D(46, ["SWAP.B", "Rm", "Rn"], EX, 1, 1, P[1], rm, rn),
    D(47, ["SWAP.W", "Rm", "Rn"], EX, 1, 1, P[1], rm, rn),
    D(48, ["XTRCT", "Rm", "Rn"], EX, 1, 1, P[1], rmn, rn),

    # Fixed-point arithmetic instructions
    D(49, ["ADD", "Rm", "Rn"], EX, 1, 1, P[1], rmn, rn),
    D(50, ["ADD", "#imm", "Rn"], EX, 1, 1, P[1], none, rn),
    D(51, ["ADDC", "Rm", "Rn"], EX, 1, 1, P[1], rmnsr, rn),
    D(52, ["ADDV", "Rm", "Rn"], EX, 1, 1, P[1], rmnsr, rn),
    D(53, ["CMP/EQ", "#imm", "R0"], MT, 1, 1, P[1], r0, sr),
    D(54, ["CMP/EQ", "Rm", "Rn"], MT, 1, 1, P[1], rmn, sr),
    D(55, ["CMP/GE", "Rm", "Rn"], MT, 1, 1, P[1], rmn, sr),
    D(56, ["CMP/GT", "Rm", "Rn"], MT, 1, 1, P[1], rmn, sr),
    D(57, ["CMP/HI", "Rm", "Rn"], MT, 1, 1, P[1], rmn, sr),
    D(58, ["CMP/HS", "Rm", "Rn"], MT, 1, 1, P[1], rmn, sr),
    D(59, ["CMP/PL", "Rn"], MT, 1, 1, P[1], rn, sr),
    D(60, ["CMP/PZ", "Rn"], MT, 1, 1, P[1], rn, sr),
    D(61, ["CMP/STR", "Rm", "Rn"], MT, 1, 1, P[1], rmn, sr),
    D(62, ["DIV0S", "Rm", "Rn"], EX, 1, 1, P[1], rmn, sr),
    D(63, ["DIV0U"], EX, 1, 1, P[1], none, sr),
    D(64, ["DIV1", "Rm", "Rn"], EX, 1, 1, P[1], rm, rnsr),
    D(65, ["DMULS.L", "Rm", "Rn"], CO, 2, 4, P[34], [rm, rn], ["MACH", "MACL"],
      note="f1 multiplier stages are occupancy only; decode is not locked"),
    D(66, ["DMULU.L", "Rm", "Rn"], CO, 2, 4, P[34], [rm, rn], ["MACH", "MACL"],
      note="f1 multiplier stages are occupancy only; decode is not locked"),
    D(67, ["DT", "Rn"], EX, 1, 1, P[1], rn, rnsr),
    D(68, ["MAC.L", "@Rm+", "@Rn+"], CO, 2, (2, 2, 4, 4), P[35], [rm, rn], [rm, rn, "MACH", "MACL"]),
    D(69, ["MAC.W", "@Rm+", "@Rn+"], CO, 2, (2, 2, 4, 4), P[35], [rm, rn], [rm, rn, "MACH", "MACL"],
      note="stalls after a double-precision FADD are not reproduced exactly"),
    D(70, ["MUL.L", "Rm", "Rn"], CO, 2, 4, P[34], [rm, rn], ["MACL"],
      note="f1 multiplier stages are occupancy only; decode is not locked"),
    D(71, ["MULS.W", "Rm", "Rn"], CO, 2, 4, P[34], [rm, rn], ["MACL"],
      note="f1 multiplier stages are occupancy only; decode is not locked"),
    D(72, ["MULU.W", "Rm", "Rn"], CO, 2, 4, P[34], [rm, rn], ["MACL"],
      note="f1 multiplier stages are occupancy only; decode is not locked"),
    D(73, ["NEG", "Rm", "Rn"], EX, 1, 1, P[1], rm, rn),
    D(74, ["NEGC", "Rm", "Rn"], EX, 1, 1, P[1], [rm, "SR"], [rn, "SR"]),
    D(75, ["SUB", "Rm", "Rn"], EX, 1, 1, P[1], rmn, rn),
    D(76, ["SUBC", "Rm", "Rn"], EX, 1, 1, P[1], [rm, rn, "SR"], [rn, "SR"]),
    D(77, ["SUBV", "Rm", "Rn"], EX, 1, 1, P[1], [rm, rn], [rn, "SR"]),

    # Logic operation instructions
    D(78, ["AND", "Rm", "Rn"], EX, 1, 1, P[1], rmn, rn),
    D(79, ["AND", "#imm", "R0"], EX, 1, 1, P[1], none, r0),
    D(80, ["AND.B", "#imm", "@(R0,GBR)"], CO, 4, None, P[6], r0gbr, none),
    D(81, ["NOT", "Rm", "Rn"], EX, 1, 1, P[1], rm, rn),
    D(82, ["OR", "Rm", "Rn"], EX, 1, 1, P[1], rmn, rn),
    D(83, ["OR", "#imm", "R0"], EX, 1, 1, P[1], r0, r0),
    D(84, ["OR.B", "#imm", "@(R0,GBR)"], CO, 4, None, P[6], r0gbr, none),
    D(85, ["TAS", "@Rn"], CO, 5, 5, P[7], rn, sr),
    D(86, ["TST", "Rm", "Rn"], MT, 1, 1, P[1], rmn, sr),
    D(87, ["TST", "#imm", "R0"], MT, 1, 1, P[1], r0, sr),
    D(88, ["TST.B", "#imm", "@(R0,GBR)"], CO, 3, None, P[5], r0gbr, sr,
      note="latency 3; the pattern has no result step so T is not tracked"),
    D(89, ["XOR", "Rm", "Rn"], EX, 1, 1, P[1], rmn, rn),
    D(90, ["XOR", "#imm", "R0"], EX, 1, 1, P[1], r0, r0),
    D(91, ["XOR.B", "#imm", "@(R0,GBR)"], CO, 4, None, P[6], r0gbr, none),

    # Shift instructions
    D(92, ["ROTL", "Rn"], EX, 1, 1, P[1], rnsr, rnsr),
    D(93, ["ROTR", "Rn"], EX, 1, 1, P[1], rnsr, rnsr),
    D(94, ["ROTCL", "Rn"], EX, 1, 1, P[1], rnsr, rnsr),
    D(95, ["ROTCR", "Rn"], EX, 1, 1, P[1], rnsr, rnsr),
    D(96, ["SHAD", "Rm", "Rn"], EX, 1, 1, P[1], rmn, rn),
    D(97, ["SHAL", "Rn"], EX, 1, 1, P[1], rn, rnsr),
    D(98, ["SHAR", "Rn"], EX, 1, 1, P[1], rn, rnsr),
    D(99, ["SHLD", "Rm", "Rn"], EX, 1, 1, P[1], rmn, rn),
    D(100, ["SHLL", "Rn"], EX, 1, 1, P[1], rn, rnsr),
    D(101, ["SHLL2", "Rn"], EX, 1, 1, P[1], rn, rn),
    D(102, ["SHLL8", "Rn"], EX, 1, 1, P[1], rn, rn),
    D(103, ["SHLL16", "Rn"], EX, 1, 1, P[1], rn, rn),
    D(104, ["SHLR", "Rn"], EX, 1, 1, P[1], rn, rnsr),
    D(105, ["SHLR2", "Rn"], EX, 1, 1, P[1], rn, rn),
    D(106, ["SHLR8", "Rn"], EX, 1, 1, P[1], rn, rn),
    D(107, ["SHLR16", "Rn"], EX, 1, 1, P[1], rn, rn),

    # Branch instructions; displacements and labels are matched on the bare mnemonic
    D(108, ["BF"], BR, 1, 2, P[1], none, none, note="latency 2 (or 1)"),
    D(109, ["BF/S"], BR, 1, 2, P[1], none, none, note="latency 2 (or 1)"),
    D(110, ["BT"], BR, 1, 2, P[1], none, none, note="latency 2 (or 1)"),
    D(111, ["BT/S"], BR, 1, 2, P[1], none, none, note="latency 2 (or 1)"),
    D(112, ["BRA"], BR, 1, 2, P[1], none, none),
    D(113, ["BRAF", "Rn"], CO, 2, 3, P[4], rn, none),
    D(114, ["BSR"], BR, 1, 2, P[14], none, none),
    D(115, ["BSRF", "Rn"], CO, 2, 3, P[24], rn, none, note="decode is not locked in the manual's figure"),
    D(116, ["JMP", "@Rn"], CO, 2, 3, P[4], rn, none),
    D(117, ["JSR", "@Rn"], CO, 2, 3, P[24], rn, none, note="decode is not locked in the manual's figure"),
    D(118, ["RTS"], CO, 2, 3, P[4], none, none),

    # System control instructions
    D(119, ["NOP"], MT, 1, 0, P[1], none, none),
    D(120, ["CLRMAC"], CO, 1, 3, P[28], none, ["MACH", "MACL"]),
    D(121, ["CLRS"], CO, 1, 1, P[1], none, sr),
    D(122, ["CLRT"], MT, 1, 1, P[1], none, sr),
    D(123, ["SETS"], CO, 1, 1, P[1], none, sr),
    D(124, ["SETT"], MT, 1, 1, P[1], none, sr),
    D(125, ["TRAPA", "#imm"], CO, 7, None, P[13], none, none),
    D(126, ["RTE"], CO, 5, None, P[8], none, none, note="no decode locks in the manual's figure"),
    D(127, ["SLEEP"], CO, 4, None, P[9], none, none, note="no decode locks in the manual's figure"),
    D(128, ["LDTLB"], CO, 1, None, P[2], none, none),
    D(129, ["LDC", "Rm", "DBR"], CO, 1, 3, P[14], rm, "DBR"),
    D(130, ["LDC", "Rm", "GBR"], CO, 3, 3, P[15], rm, "GBR"),
    D(131, ["LDC", "Rm", "Rn_BANK"], CO, 1, 3, P[14], rm, rn_bank),
    D(132, ["LDC", "Rm", "SR"], CO, 4, 4, P[16], rm, "SR"),
    D(133, ["LDC", "Rm", "SSR"], CO, 1, 3, P[14], rm, "SSR"),
    D(134, ["LDC", "Rm", "SPC"], CO, 1, 3, P[14], rm, "SPC"),
    D(135, ["LDC", "Rm", "VBR"], CO, 1, 3, P[14], rm, "VBR"),
    D(136, ["LDC.L", "@Rm+", "DBR"], CO, 1, (1, 3), P[17], rm, [rm, "DBR"]),
    D(137, ["LDC.L", "@Rm+", "GBR"], CO, 3, (3, 3), P[18], rm, [rm, "GBR"]),
    D(138, ["LDC.L", "@Rm+", "Rn_BANK"], CO, 1, (1, 3), P[17], rm, [rm, rn_bank]),
    D(139, ["LDC.L", "@Rm+", "SR"], CO, 4, (4, 4), P[19], rm, [rm, "SR"]),
    D(140, ["LDC.L", "@Rm+", "SSR"], CO, 1, (1, 3), P[17], rm, [rm, "SSR"]),
    D(141, ["LDC.L", "@Rm+", "SPC"], CO, 1, (1, 3), P[17], rm, [rm, "SPC"]),
    D(142, ["LDC.L", "@Rm+", "VBR"], CO, 1, (1, 3), P[17], rm, [rm, "VBR"]),
    D(143, ["LDS", "Rm", "MACH"], CO, 1, 3, P[28], rm, "MACH"),
    D(144, ["LDS", "Rm", "MACL"], CO, 1, 3, P[28], rm, "MACL"),
    D(145, ["LDS", "Rm", "PR"], CO, 2, 3, P[24], rm, "PR", note="decode is not locked in the manual's figure"),
    D(146, ["LDS.L", "@Rm+", "MACH"], CO, 1, (1, 3), P[29], rm, [rm, "MACH"]),
    D(147, ["LDS.L", "@Rm+", "MACL"], CO, 1, (1, 3), P[29], rm, [rm, "MACL"]),
    D(148, ["LDS.L", "@Rm+", "PR"], CO, 2, (2, 3), P[25], rm, [rm, "PR"]),
    D(149, ["STC", "DBR", "Rn"], CO, 2, 2, P[20], "DBR", rn),
    D(150, ["STC", "SGR", "Rn"], CO, 3, 3, P[21], "SGR", rn,
      note="the manual's figure for this form looks like plain STC, with no MA stage"),
    D(151, ["STC", "GBR", "Rn"], CO, 2, 2, P[20], "GBR", rn),
    D(152, ["STC", "Rm_BANK", "Rn"], CO, 2, 2, P[20], rm_bank, rn),
    D(153, ["STC", "SR", "Rn"], CO, 2, 2, P[20], "SR", rn),
    D(154, ["STC", "SSR", "Rn"], CO, 2, 2, P[20], "SSR", rn),
    D(155, ["STC", "SPC", "Rn"], CO, 2, 2, P[20], "SPC", rn),
    D(156, ["STC", "VBR", "Rn"], CO, 2, 2, P[20], "VBR", rn),
    D(157, ["STC.L", "DBR", "@-Rn"], CO, 2, (2, 2), P[22], "DBR", rn),
    D(158, ["STC.L", "SGR", "@-Rn"], CO, 3, (3, 3), P[23], "SGR", rn),
    D(159, ["STC.L", "GBR", "@-Rn"], CO, 2, (2, 2), P[22], "GBR", rn),
    D(160, ["STC.L", "Rm_BANK", "@-Rn"], CO, 2, 2, P[22], [rm_bank, rn], rn),
    D(161, ["STC.L", "SR", "@-Rn"], CO, 2, (2, 2), P[22], "SR", rn),
    D(162, ["STC.L", "SSR", "@-Rn"], CO, 2, (2, 2), P[22], "SSR", rn),
    D(163, ["STC.L", "SPC", "@-Rn"], CO, 2, (2, 2), P[22], "SPC", rn),
    D(164, ["STC.L", "VBR", "@-Rn"], CO, 2, (2, 2), P[22], "VBR", rn),
    D(165, ["STS", "MACH", "Rn"], CO, 1, 3, P[30], "MACH", rn),
    D(166, ["STS", "MACL", "Rn"], CO, 1, 3, P[30], "MACL", rn),
    D(167, ["STS", "PR", "Rn"], CO, 2, 2, P[26], "PR", rn),
    D(168, ["STS.L", "MACH", "@-Rn"], CO, 1, 1, P[31], "MACH", rn),
    D(169, ["STS.L", "MACL", "@-Rn"], CO, 1, 1, P[31], "MACL", rn),
    D(170, ["STS.L", "PR", "@-Rn"], CO, 2, 2, P[27], "PR", rn),

    # Single-precision floating-point instructions
    D(171, ["FLDI0", "FRn"], LS, 1, 0, P[1], none, fn),
    D(172, ["FLDI1", "FRn"], LS, 1, 0, P[1], none, fn),
    D(173, ["FMOV", "FRm", "FRn"], LS, 1, 0, P[1], fm, fn),
    D(174, ["FMOV.S", "@Rm", "FRn"], LS, 1, 2, P[2], rm, fn),
    D(175, ["FMOV.S", "@Rm+", "FRn"], LS, 1, (1, 2), P[2], rm, [rm, fn]),
    D(176, ["FMOV.S", "@(R0,Rm)", "FRn"], LS, 1, 2, P[2], at_r0m, fn),
    D(177, ["FMOV.S", "FRm", "@Rn"], LS, 1, 1, P[2], fmrn, none),
    D(178, ["FMOV.S", "FRm", "@-Rn"], LS, 1, 1, P[2], fmrn, rn),
    D(179, ["FMOV.S", "FRm", "@(R0,Rn)"], LS, 1, 1, P[2], fm_at_r0n, none),
    D(180, ["FLDS", "FRm", "FPUL"], LS, 1, 0, P[1], fm, fpul),
    D(181, ["FSTS", "FPUL", "FRn"], LS, 1, 0, P[1], fpul, fn),
    D(182, ["FABS", "FRn"], LS, 1, 0, P[1], fn, fn),
    D(183, ["FADD", "FRm", "FRn"], FE, 1, 3, P[36], fnm, fn, note="latency 3/4"),
    D(184, ["FCMP/EQ", "FRm", "FRn"], FE, 1, 2, P[36], fnm, sr, note="latency 2/4"),
    D(185, ["FCMP/GT", "FRm", "FRn"], FE, 1, 2, P[36], fnm, sr, note="latency 2/4"),
    D(186, ["FDIV", "FRm", "FRn"], FE, 1, (12, 13), pattern_37(10), fnm, [fn, "FPSCR"]),
    D(187, ["FLOAT", "FPUL", "FRn"], FE, 1, 3, P[36], fpul, fn, note="latency 3/4"),
    D(188, ["FMAC", "FR0", "FRm", "FRn"], FE, 1, 3, P[36], [fnm, "FR0"], [fn, "FPSCR"], note="latency 3/4"),
    D(189, ["FMUL", "FRm", "FRn"], FE, 1, 3, P[36], fnm, fn, note="latency 3/4"),
    D(190, ["FNEG", "FRn"], LS, 1, 0, P[1], fn, fn),
    D(191, ["FSQRT", "FRn"], FE, 1, 11, pattern_37(9), fn, fn, note="latency 11/12"),
    D(192, ["FSUB", "FRm", "FRn"], FE, 1, 3, P[36], fnm, fn, note="latency 3/4"),
    D(193, ["FTRC", "FRm", "FPUL"], FE, 1, 3, P[36], fm, ["FPUL", "FPSCR"], note="latency 3/4"),
    D(194, ["FMOV", "DRm", "DRn"], LS, 1, 0, P[1], dm, dn),
    D(195, ["FMOV", "@Rm", "DRn"], LS, 1, 2, P[2], rm, dn),
    D(196, ["FMOV", "@Rm+", "DRn"], LS, 1, (1, 2), P[2], rm, [rm, dn]),
    D(197, ["FMOV", "@(R0,Rm)", "DRn"], LS, 1, 2, P[2], at_r0m, dn),
    D(198, ["FMOV", "DRm", "@Rn"], LS, 1, 1, P[2], [dm, rn], none),
    D(199, ["FMOV", "DRm", "@-Rn"], LS, 1, (1, 1), P[2], [dm, rn], rn),
    D(200, ["FMOV", "DRm", "@(R0,Rn)"], LS, 1, 1, P[2], [dm, at_r0n], none),

    # Double-precision floating-point instructions
    D(201, ["FABS", "DRn"], LS, 1, 0, P[1], dn, dn),
    D(202, ["FADD", "DRm", "DRn"], FE, 1, (7, 8), P[39], [dm, dn], [dn, "FPSCR"], note="latency (7, 8)/9"),
    D(203, ["FCMP/EQ", "DRm", "DRn"], CO, 2, 3, P[40], [dm, dn], [sr, "FPSCR"], note="latency 3/5"),
    D(204, ["FCMP/GT", "DRm", "DRn"], CO, 2, 3, P[40], [dm, dn], [sr, "FPSCR"], note="latency 3/5"),
    D(205, ["FCNVDS", "DRm", "FPUL"], FE, 1, 4, P[38], dm, ["FPUL", "FPSCR"], note="latency 4/5"),
    D(206, ["FCNVSD", "FPUL", "DRn"], FE, 1, (3, 4), P[38], fpul, [dn, "FPSCR"], note="latency (3, 4)/5"),
    D(207, ["FDIV", "DRm", "DRn"], FE, 1, (24, 25), pattern_41(21), [dm, dn], [dn, "FPSCR"],
      note="latency (24, 25)/26"),
    D(208, ["FLOAT", "FPUL", "DRn"], FE, 1, (3, 4), P[38], fpul, [dn, "FPSCR"], note="latency (3, 4)/5"),
    D(209, ["FMUL", "DRm", "DRn"], FE, 1, (7, 8), P[39], [dm, dn], [dn, "FPSCR"], note="latency (7, 8)/9"),
    D(210, ["FNEG", "DRn"], LS, 1, 0, P[1], dn, dn),
    D(211, ["FSQRT", "DRn"], FE, 1, (23, 24), pattern_41(20), dn, [dn, "FPSCR"], note="latency (23, 24)/25"),
    D(212, ["FSUB", "DRm", "DRn"], FE, 1, (7, 8), P[39], [dm, dn], [dn, "FPSCR"], note="latency (7, 8)/9"),
    D(213, ["FTRC", "DRm", "FPUL"], FE, 1, 4, P[38], dm, ["FPUL", "FPSCR"], note="latency 4/5"),

    # FPU system control instructions
    D(214, ["LDS", "Rm", "FPUL"], LS, 1, 1, P[1], rm, fpul),
    D(215, ["LDS", "Rm", "FPSCR"], CO, 1, 3, P[32], rm, "FPSCR", note="the manual lists latency 4"),
    D(216, ["LDS.L", "@Rm+", "FPUL"], CO, 1, (1, 2), P[2], rm, [rm, "FPUL"]),
    D(217, ["LDS.L", "@Rm+", "FPSCR"], CO, 1, 1, P[33], rm, [rm, "FPSCR"], note="latency 1/4"),
    D(218, ["STS", "FPUL", "Rn"], LS, 1, 3, P[1], fpul, rn),
    D(219, ["STS", "FPSCR", "Rn"], CO, 1, 3, P[1], "FPSCR", rn),
    D(220, ["STS.L", "FPUL", "@-Rn"], CO, 1, (1, 1), P[2], fpul, rn),
    D(221, ["STS.L", "FPSCR", "@-Rn"], CO, 1, (1, 1), P[2], "FPSCR", rn),

    # Graphics acceleration instructions
    D(222, ["FMOV", "DRm", "XDn"], LS, 1, 0, P[1], dm, xdn),
    D(223, ["FMOV", "XDm", "DRn"], LS, 1, 0, P[1], xdm, dn),
    D(224, ["FMOV", "XDm", "XDn"], LS, 1, 0, P[1], xdm, xdn),
    D(225, ["FMOV", "@Rm", "XDn"], LS, 1, 2, P[2], rm, xdn),
    D(226, ["FMOV", "@Rm+", "XDn"], LS, 1, (1, 2), P[2], rm, [rm, xdn]),
    D(227, ["FMOV", "@(R0,Rm)", "XDn"], LS, 1, 2, P[2], at_r0m, xdn),
    D(228, ["FMOV", "XDm", "@Rn"], LS, 1, 1, P[2], [xdm, rn], none),
    D(229, ["FMOV", "XDm", "@-Rn"], LS, 1, (1, 1), P[2], [xdm, rn], rn),
    D(230, ["FMOV", "XDm", "@(R0,Rn)"], LS, 1, 1, P[2], [xdm, at_r0n], none),
    D(231, ["FIPR", "FVm", "FVn"], FE, 1, 4, P[42], fvm, fvn, note="latency 4/5"),
    D(232, ["FRCHG"], FE, 1, 1, P[36], "FPSCR", "FPSCR", note="latency 1/4"),
    D(233, ["FSCHG"], FE, 1, 1, P[36], "FPSCR", "FPSCR", note="latency 1/4"),
    D(234, ["FTRV", "XMTRX", "FVn"], FE, 1, (5, 5, 6, 7, 8), P[43], xmtrx, [fvn, "FPSCR"],
      note="latency (5, 5, 6, 7)/8"),

    # Not in the manual
    D(256, ["FSRRA", "FRn"], FE, 1, 3, P[36], fn, fn, note="not in the manual; latency unverified"),
    D(257, ["FSCA", "FPUL", "DRn"], FE, 1, 3, P[36], fpul, dn, note="not in the manual; latency unverified"),
]

INSTRUCTIONS_BY_NUMBER: Dict[int, InstructionDefinition] = {d.number: d for d in INSTRUCTIONS}

# Unique mnemonics in table order, for editor syntax highlighting
SH4_MNEMONICS: List[str] = list(dict.fromkeys(d.mnemonic.lower() for d in INSTRUCTIONS))

SH4_REGISTERS: List[str] = (
    [f"R{i}" for i in range(16)]
    + [f"R{i}_BANK" for i in range(8)]
    + [f"FR{i}" for i in range(16)]
    + [f"DR{i}" for i in range(0, 16, 2)]
    + [f"XD{i}" for i in range(0, 16, 2)]
    + ["FV0", "FV4", "FV8", "FV12"]
    + [f"XF{i}" for i in range(16)]
    + ["PR", "SR", "GBR", "VBR", "SSR", "SPC", "SGR", "DBR", "MACH", "MACL", "PC", "SSP", "USP",
       "FPSCR", "FPUL", "XMTRX"]
)

CatalogEntry = namedtuple('CatalogEntry', ['definition', 'operands'])

class Catalog:
    """Maps every concrete, normalized instruction text to its definition and operands."""

    def __init__(self, definitions: Optional[Iterable[InstructionDefinition]] = None):
        self.definitions: List[InstructionDefinition] = list(INSTRUCTIONS if definitions is None else definitions)
        self._entries: Dict[str, CatalogEntry] = {}
        for definition in self.definitions:
            for operands in itertools.product(*(variants(part) for part in definition.asm)):
                key = variant_key(operands)
                if key in self._entries:
                    other = self._entries[key].definition
                    raise CatalogError(f"'{key}' matches both #{other.number} and #{definition.number}")
                self._entries[key] = CatalogEntry(definition, tuple(operands))
        logger.debug("Catalog built: %d definitions, %d variants", len(self.definitions), len(self._entries))

    def lookup(self, text: str) -> Optional[CatalogEntry]:
        return self._entries.get(normalize(text))

    def __contains__(self, text: str) -> bool:
        return self.lookup(text) is not None

    def __len__(self) -> int:
        return len(self._entries)

_default_catalog: Optional[Catalog] = None

def default_catalog() -> Catalog:
    """Builds the catalog over INSTRUCTIONS on first use and returns the shared instance."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = Catalog()
    return _default_catalog
