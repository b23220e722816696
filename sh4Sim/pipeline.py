import re
from collections import namedtuple
from enum import Enum
from typing import List, Optional, Tuple

class Stage(Enum):
    I = "I"          # Issue
    D = "D"          # Decode
    EX = "EX"        # Execute
    SX = "SX"        # Secondary execute (system / GBR-relative)
    F0 = "F0"        # Floating-point sub-stages
    F1 = "F1"
    F2 = "F2"
    F3 = "F3"
    NA = "NA"        # Non-memory-access
    MA = "MA"        # Memory access
    S = "S"          # Store / write-back
    FS = "FS"        # Floating store
    SHADOW_F1 = "f1" # Shadow stages, only reached by chained micro-ops
    SHADOW_D = "d"

    def __str__(self) -> str:
        return self.value

class Group(Enum):
    MT = "MT"  # Move / test
    EX = "EX"  # Integer execute
    BR = "BR"  # Branch
    LS = "LS"  # Load / store
    FE = "FE"  # Floating execute
    CO = "CO"  # Complex, always serializes

    def __str__(self) -> str:
        return self.value

def is_parallel(group1: Group, group2: Group) -> bool:
    """Returns True when two groups may occupy the same stage in one cycle."""
    if group1 == Group.MT and group2 == Group.MT:
        return True
    if group1 == Group.CO or group2 == Group.CO:
        return False
    return group1 != group2

_StepBase = namedtuple('_StepBase', ['stage', 'lock', 'partial_lock', 'result', 'kick'])

class Step(_StepBase):
    """One cycle of a micro-operation's trajectory: the stage it occupies plus its flags."""
    __slots__ = ()

    def __new__(cls, stage: Stage, lock: bool = False, partial_lock: bool = False,
                result: bool = False, kick: Optional[int] = None):
        return super().__new__(cls, stage, lock, partial_lock, result, kick)

    @property
    def locks(self) -> bool:
        return self.lock or self.partial_lock

    def with_result(self) -> 'Step':
        return self._replace(result=True)

    def __str__(self) -> str:
        flags = []
        if self.lock: flags.append("L")
        if self.partial_lock: flags.append("LP")
        if self.result: flags.append("R")
        if self.kick is not None: flags.append(f"K{self.kick}")
        return ":".join([self.stage.value] + flags)

Row = Tuple[Step, ...]
Pattern = Tuple[Row, ...]

_STAGES_BY_NAME = {stage.value: stage for stage in Stage}
_KICK_RE = re.compile(r"K(\d+)")

def parse_step(token: str) -> Step:
    """
    Parses one step in the compact pattern notation.

    A step is a stage name optionally followed by ':'-separated flags:
    L (lock), LP (partial lock), R (result) and K<n> (kick row n).
    For example "EX:K1" or "D:L:K2".
    """
    name, *flags = token.split(":")
    if name not in _STAGES_BY_NAME:
        raise ValueError(f"Unknown stage '{name}' in step '{token}'")
    lock = partial_lock = result = False
    kick = None
    for flag in flags:
        match = _KICK_RE.fullmatch(flag)
        if flag == "L":
            lock = True
        elif flag == "LP":
            partial_lock = True
        elif flag == "R":
            result = True
        elif match:
            kick = int(match.group(1))
        else:
            raise ValueError(f"Unknown flag '{flag}' in step '{token}'")
    return Step(_STAGES_BY_NAME[name], lock, partial_lock, result, kick)

def parse_row(text: str) -> Row:
    return tuple(parse_step(token) for token in text.split())

def parse_pattern(rows: List[str]) -> Pattern:
    """Parses a list of row strings, e.g. ["I D:L EX:K1 NA S:R", "D:L EX NA S"]."""
    return tuple(parse_row(row) for row in rows)

def format_pattern(pattern: Pattern) -> List[str]:
    return [" ".join(str(step) for step in row) for row in pattern]
