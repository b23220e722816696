import re
from typing import Callable, Dict, List, Sequence, Union

from .errors import CatalogError

# An extractor maps (placeholders, concrete operands) to abstract register names.
# Both lists include the mnemonic at index 0.
OperandExtractor = Callable[[Sequence[str], Sequence[str]], List[str]]
RegisterSpec = Union[str, OperandExtractor, list]

_GP = [f"R{i}" for i in range(16)]
_BANK = [f"R{i}_BANK" for i in range(8)]
_FR = [f"FR{i}" for i in range(16)]
_DR = [f"DR{i}" for i in range(0, 16, 2)]
_XD = [f"XD{i}" for i in range(0, 16, 2)]
_FV = [f"FV{i}" for i in range(0, 16, 4)]

def variants(placeholder: str) -> List[str]:
    """
    Expands one operand placeholder into every concrete operand text it stands for.
    Placeholders without an expansion are literal and expand to themselves.
    """
    if placeholder in ("Rm", "Rn"):
        return list(_GP)
    if placeholder in ("Rm_BANK", "Rn_BANK"):
        return list(_BANK)
    if placeholder in ("@Rm", "@Rn"):
        return [f"@{r}" for r in _GP]
    if placeholder in ("@Rm+", "@Rn+"):
        return [f"@{r}+" for r in _GP]
    if placeholder == "@-Rn":
        return [f"@-{r}" for r in _GP]
    if placeholder == "#imm":
        return [f"#{i}" for i in range(-128, 256)]
    if placeholder == "@(disp,PC)":
        return [f"@({i},PC)" for i in range(256)]
    if placeholder == "@(disp,GBR)":
        return [f"@({i},GBR)" for i in range(256)]
    if placeholder in ("@(R0,Rm)", "@(R0,Rn)"):
        return [f"@(R0,{r})" for r in _GP]
    if placeholder in ("@(disp4,Rm)", "@(disp4,Rn)"):
        return [f"@({disp},{r})" for disp in range(64) for r in _GP]
    if placeholder in ("FRm", "FRn"):
        return list(_FR)
    if placeholder in ("DRm", "DRn"):
        return list(_DR)
    if placeholder in ("XDm", "XDn"):
        return list(_XD)
    if placeholder in ("FVm", "FVn"):
        return list(_FV)
    return [placeholder]

def normalize(text: str) -> str:
    """Canonical lookup form: single spaces, no spaces around ',' '(' ')' or after '@', lower case."""
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\s*,\s*", ",", text)
    text = re.sub(r"@\s*", "@", text)
    text = re.sub(r"\s*\(\s*", "(", text)
    text = re.sub(r"\s*\)\s*", ")", text)
    return text.lower().strip()

def variant_key(operands: Sequence[str]) -> str:
    return normalize(operands[0] + " " + ",".join(operands[1:]))

def index_of_part(asm: Sequence[str], part: str) -> int:
    for i, placeholder in enumerate(asm):
        if placeholder in (part, f"@{part}", f"@{part}+", f"@-{part}"):
            return i
    raise CatalogError(f"Part {part} not found in {list(asm)}")

def _operand(asm, operands, part) -> str:
    return operands[index_of_part(asm, part)]

_AT_R0 = re.compile(r"@\(R0,([^)]*)\)")
_AT_DISP = re.compile(r"@\([0-9]*,([^)]*)\)")

def _base_register(pattern, text: str) -> str:
    match = pattern.fullmatch(text)
    if not match:
        raise CatalogError(f"Cannot extract base register from '{text}'")
    return match.group(1)

def _pair_map(prefix: str, component: str, width: int) -> Dict[str, List[str]]:
    return {f"{prefix}{i}": [f"{component}{i + j}" for j in range(width)] for i in range(0, 16, width)}

_DR_REGS = _pair_map("DR", "FR", 2)
_XD_REGS = _pair_map("XD", "XF", 2)
_FV_REGS = _pair_map("FV", "FR", 4)

def _expand(table: Dict[str, List[str]], asm, operands, part) -> List[str]:
    name = _operand(asm, operands, part)
    if name not in table:
        raise CatalogError(f"Unknown {part} {name} in {list(asm)}")
    return list(table[name])

# Extractors

def none(asm, operands) -> List[str]:
    return []

def r0(asm, operands) -> List[str]:
    return ["R0"]

def sr(asm, operands) -> List[str]:
    return ["SR"]

def fpul(asm, operands) -> List[str]:
    return ["FPUL"]

def r0gbr(asm, operands) -> List[str]:
    return ["R0", "GBR"]

def rm(asm, operands) -> List[str]:
    return [_operand(asm, operands, "Rm").replace("@", "").replace("+", "")]

def rn(asm, operands) -> List[str]:
    return [_operand(asm, operands, "Rn").replace("@", "").replace("-", "").replace("+", "")]

def rm_bank(asm, operands) -> List[str]:
    return [_operand(asm, operands, "Rm_BANK")]

def rn_bank(asm, operands) -> List[str]:
    return [_operand(asm, operands, "Rn_BANK")]

def at_r0m(asm, operands) -> List[str]:
    return ["R0", _base_register(_AT_R0, _operand(asm, operands, "@(R0,Rm)"))]

def at_r0n(asm, operands) -> List[str]:
    return ["R0", _base_register(_AT_R0, _operand(asm, operands, "@(R0,Rn)"))]

def at_d4rm(asm, operands) -> List[str]:
    return [_base_register(_AT_DISP, _operand(asm, operands, "@(disp4,Rm)"))]

def at_d4rn(asm, operands) -> List[str]:
    return [_base_register(_AT_DISP, _operand(asm, operands, "@(disp4,Rn)"))]

def fm(asm, operands) -> List[str]:
    return [_operand(asm, operands, "FRm")]

def fn(asm, operands) -> List[str]:
    return [_operand(asm, operands, "FRn")]

def dm(asm, operands) -> List[str]:
    return _expand(_DR_REGS, asm, operands, "DRm")

def dn(asm, operands) -> List[str]:
    return _expand(_DR_REGS, asm, operands, "DRn")

def xdm(asm, operands) -> List[str]:
    return _expand(_XD_REGS, asm, operands, "XDm")

def xdn(asm, operands) -> List[str]:
    return _expand(_XD_REGS, asm, operands, "XDn")

def fvm(asm, operands) -> List[str]:
    return _expand(_FV_REGS, asm, operands, "FVm")

def fvn(asm, operands) -> List[str]:
    return _expand(_FV_REGS, asm, operands, "FVn")

def xmtrx(asm, operands) -> List[str]:
    return [f"XF{i}" for i in range(16)]

def registers(*specs: RegisterSpec) -> OperandExtractor:
    """
    Combines register specs into a single extractor.

    A spec is a literal register name, an extractor, or a list of specs.
    Results are concatenated in order; duplicates are removed later, per instruction.
    """
    def resolve(spec, asm, operands) -> List[str]:
        if isinstance(spec, str):
            return [spec]
        if isinstance(spec, (list, tuple)):
            names = []
            for item in spec:
                names.extend(resolve(item, asm, operands))
            return names
        if callable(spec):
            return spec(asm, operands)
        raise CatalogError(f"Invalid register spec {spec!r}")

    def extract(asm, operands) -> List[str]:
        return resolve(list(specs), asm, operands)

    return extract

# Common combinations
rmn = registers(rm, rn)
rnsr = registers(rn, "SR")
rmnsr = registers(rm, rn, "SR")
fnm = registers(fm, fn)
fmrn = registers(fm, rn)
rm_at_r0n = registers(rm, at_r0n)
rm_at_d4rn = registers(rm, at_d4rn)
r0_at_d4rn = registers(r0, at_d4rn)
fm_at_r0n = registers(fm, at_r0n)
