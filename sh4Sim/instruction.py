import logging
import re
from typing import List, Optional, Tuple

from . import config
from .catalog import Catalog, CatalogEntry, InstructionDefinition, default_catalog
from .errors import AssembleError
from .operands import normalize

logger = logging.getLogger(__name__)

_COMMENT_RE = re.compile(r";|!|//")
# mova/mov.w/mov.l may name a label instead of @(disp,PC)
_LABEL_OPERAND_RE = re.compile(r" .*,")
_LABEL_MNEMONICS = ("mova", "mov.w", "mov.l")

def _unique(names: List[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(names))

class DecodedInstruction:
    """
    One source line matched to its catalog definition.
    Immutable once decoded; a Processor keeps its own issue state for it.
    """
    def __init__(self, pc: int, text: str, entry: CatalogEntry, track: int):
        self.pc: int = pc
        self.text: str = text
        self.definition: InstructionDefinition = entry.definition
        self.operands: Tuple[str, ...] = entry.operands
        self.track: int = track

        asm = self.definition.asm
        self.reads: Tuple[str, ...] = _unique(self.definition.reads(asm, self.operands))
        self.writes: Tuple[str, ...] = _unique(self.definition.writes(asm, self.operands))

    @property
    def rows(self) -> int:
        return self.definition.rows

    def format(self) -> str:
        return f"{self.pc:08x} {self.text}"

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        details = [f"'{self.text}' (PC:{self.pc:#x}, Track:{self.track}) #{self.definition.number}"]
        if self.reads: details.append(f"Reads:{','.join(self.reads)}")
        if self.writes: details.append(f"Writes:{','.join(self.writes)}")
        return "<DecodedInstruction " + ", ".join(details) + ">"

class ProgramBlock(list):
    """An ordered list of DecodedInstruction simulated on its own, with an optional title and subtitle."""

    def __init__(self, title: Optional[str] = None, subtitle: Optional[str] = None):
        super().__init__()
        self.title: Optional[str] = title
        self.subtitle: Optional[str] = subtitle

    @property
    def tracks(self) -> int:
        return sum(instruction.rows for instruction in self)

def _strip_comment(line: str) -> str:
    return _COMMENT_RE.split(line, 1)[0].strip()

def _match(catalog: Catalog, processed: str) -> Optional[CatalogEntry]:
    entry = catalog.lookup(processed)
    if entry is not None:
        return entry

    # Branches: the displacement or label is not part of the timing definition
    mnemonic = processed.split(" ")[0]
    entry = catalog.lookup(mnemonic)
    if entry is not None:
        return entry

    # Label validity and distance are not checked
    if mnemonic in _LABEL_MNEMONICS:
        return catalog.lookup(_LABEL_OPERAND_RE.sub(" @(0,pc),", processed, count=1))
    return None

def assemble(source: str, catalog: Optional[Catalog] = None) -> List[ProgramBlock]:
    """
    Decodes program text into blocks of instructions.

    '#' starts a titled block and '##' a subtitled one; either only starts a new
    block when the current one already holds instructions. Directives ('.') and
    labels (trailing ':') are skipped. The first line that matches nothing raises
    AssembleError and nothing is returned.
    """
    if catalog is None:
        catalog = default_catalog()

    block = ProgramBlock()
    blocks = [block]
    pc = 0
    track = 0
    for line in source.split("\n"):
        no_comments = _strip_comment(line)
        if not no_comments:
            continue
        processed = normalize(no_comments)

        if processed.startswith("#"):
            if len(block) != 0:
                logger.debug("Starting new block: %s", processed)
                block = ProgramBlock()
                blocks.append(block)
                pc = 0
                track = 0
            # Titles keep their case; only whitespace is collapsed
            heading = " ".join(no_comments.split())
            if heading.startswith("##"):
                block.subtitle = heading[2:].strip()
            else:
                block.title = heading[1:].strip()
            continue
        if processed.startswith("."):
            logger.debug("Skipping directive: %s", processed)
            continue
        if processed.endswith(":"):
            logger.debug("Skipping label: %s", processed)
            continue

        entry = _match(catalog, processed)
        if entry is None:
            logger.warning("Unknown instruction: %s from %r", processed, line)
            raise AssembleError(processed, line)

        instruction = DecodedInstruction(pc, processed, entry, track)
        block.append(instruction)
        track += instruction.rows
        pc += config.PC_STEP

    logger.debug("Assembled %d blocks, %d instructions", len(blocks), sum(len(b) for b in blocks))
    return blocks

if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG)
    for decoded in assemble("# demo\nMOV.L @R1,R2 ; load\nadd r2, r3\nbf .L1\nmova label,r0\n.align 4\n.L1:")[0]:
        print(f"{decoded.format():<30} {decoded!r}")
