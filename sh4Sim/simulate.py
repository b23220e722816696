import logging
from collections import namedtuple
from typing import Optional

from . import config
from .catalog import SH4_MNEMONICS, SH4_REGISTERS, Catalog
from .errors import AssembleError
from .instruction import assemble
from .processor import Processor
from .trace import build_table

logger = logging.getLogger(__name__)

__all__ = ['SimBlock', 'SimulateResult', 'simulate', 'SH4_MNEMONICS', 'SH4_REGISTERS', 'COLUMNS_PER_GROUP']

SimBlock = namedtuple('SimBlock', ['id', 'title', 'subtitle', 'table', 'cycle_count', 'capped'])

# error is None on success; blocks is empty when decoding failed
SimulateResult = namedtuple('SimulateResult', ['blocks', 'error'])

def __getattr__(name):
    # COLUMNS_PER_GROUP follows config.set_columns_per_group
    if name == "COLUMNS_PER_GROUP":
        return config.COLUMNS_PER_GROUP
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def simulate(source: str, max_cycles: Optional[int] = None, catalog: Optional[Catalog] = None) -> SimulateResult:
    """Decodes `source` and runs every block through its own Processor."""
    try:
        program = assemble(source, catalog)
    except AssembleError as e:
        logger.warning("Decode failed: %s", e)
        return SimulateResult([], str(e))

    blocks = []
    for index, block in enumerate(program):
        processor = Processor(block, max_cycles=max_cycles)
        columns, cycle_count = processor.run()
        logger.info("Block %d (%s): %d cycles%s", index, block.title or block.subtitle or "untitled",
                    cycle_count, ", capped" if processor.capped else "")
        blocks.append(SimBlock(
            id=f"block-{index}",
            title=block.title,
            subtitle=block.subtitle,
            table=build_table(columns),
            cycle_count=cycle_count,
            capped=processor.capped,
        ))
    return SimulateResult(blocks, None)
