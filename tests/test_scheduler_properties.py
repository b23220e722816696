import pytest

from sh4Sim.default_source import DEFAULT_SOURCE
from sh4Sim.instruction import assemble
from sh4Sim.pipeline import Stage, is_parallel
from sh4Sim.processor import Processor
from sh4Sim.register_file import ProvidesMap

# A kicked partial-lock row of the younger instruction waits on F1 while the older FPU rows take turns locking it
LOCK_CONTENTION = [
    "FMUL DR2,DR0\nLDS R1,MACH",
    "FADD DR4,DR6\nLDS.L @R1+,MACL",
]

BLOCKS = list(assemble(DEFAULT_SOURCE)) + [assemble(source)[0] for source in LOCK_CONTENTION]

def block_id(block):
    return block.title or block.subtitle or str(block[0])

class RecordingProvides(ProvidesMap):
    """Remembers every producer that left while another, earlier instruction still owed one of its registers."""

    def __init__(self):
        super().__init__()
        self.overtaking = []

    def retract(self, sequence):
        if self.pending_producers(sequence, sequence.writes):
            self.overtaking.append(sequence)
        super().retract(sequence)

def cycles(processor):
    """Runs `processor` to completion, yielding (in_flight before the cycle, cells of the new column)."""
    while not processor.is_simulation_complete():
        assert processor.current_cycle <= processor.max_cycles
        before = list(processor.in_flight)
        processor.run_cycle()
        yield before, [cell for cell in processor.columns[-1][1:] if cell.sequence is not None]

@pytest.mark.parametrize("block", BLOCKS, ids=block_id)
def test_issue_width_and_program_order(block):
    processor = Processor(block)
    issued = []
    for before, cells in cycles(processor):
        new = [cell.sequence for cell in cells if cell.sequence.stage == Stage.I and cell.sequence not in before]
        assert len(new) <= processor.issue_slots
        assert sum(1 for seq in processor.in_flight if seq.stage == Stage.I) <= processor.issue_slots
        issued.extend(seq.instruction for seq in new)

    assert issued == list(block)
    order = 0
    for instruction in block:
        rows = processor.sequences[instruction]
        assert [seq.program_order for seq in rows] == list(range(order, order + instruction.rows))
        assert [seq.track for seq in rows] == list(range(instruction.track, instruction.track + instruction.rows))
        order += instruction.rows

@pytest.mark.parametrize("block", BLOCKS, ids=block_id)
def test_advancing_sequences_respect_capacity_and_groups(block):
    processor = Processor(block)
    for before, cells in cycles(processor):
        for cell in cells:
            seq = cell.sequence
            if cell.stall or seq not in before:
                continue
            earlier = [other.sequence for other in cells
                       if other.sequence.stage == seq.stage and other.sequence.program_order < seq.program_order]
            assert len(earlier) < processor.stage_capacity, cell.id
            if seq.stage == Stage.D:
                continue
            for other in earlier:
                if other.instruction is not seq.instruction:
                    assert is_parallel(other.group, seq.group), cell.id

@pytest.mark.parametrize("block", BLOCKS, ids=block_id)
def test_writers_of_a_register_leave_in_program_order(block):
    processor = Processor(block)
    provides = RecordingProvides()
    processor.provides = provides
    processor.run()
    assert not processor.capped
    # Only a zero-latency result, published in D straight from I, can overtake an earlier writer
    for seq in provides.overtaking:
        assert (seq.row, seq.step) == (0, 1)
        assert seq.latency == 0

def test_zero_latency_writer_overtakes():
    processor = Processor(assemble("FADD DR0,DR2\nFMOV FR0,FR3")[0])
    provides = RecordingProvides()
    processor.provides = provides
    processor.run()
    assert [str(seq) for seq in provides.overtaking] == ["fmov fr0,fr3[0]"]

@pytest.mark.parametrize("source", LOCK_CONTENTION)
def test_lock_contention_completes(source):
    processor = Processor(assemble(source)[0])
    columns, cycle_count = processor.run()
    assert not processor.capped
    assert cycle_count == 11
    stalled = [(track, cycle, cell.text) for cycle, column in enumerate(columns[1:])
               for track, cell in enumerate(column[1:]) if cell.stall]
    assert stalled == [(7, cycle, "F1~F1") for cycle in (4, 5, 6, 7)]
    assert not processor.stage_locks

def test_older_row_is_not_held_by_younger_partial_lock():
    processor = Processor(assemble(LOCK_CONTENTION[0])[0])
    fmul, lds = processor.block
    for _ in range(4):
        processor.run_cycle()
    # At the end of cycle 3 the younger LDS row holds F1
    assert processor.stage_locks[Stage.F1] is processor.sequences[lds][1]

    processor.run_cycle()
    older = processor.sequences[fmul][2]
    assert older.stage == Stage.F1
    assert not processor.columns[-1][older.track + 1].stall
    assert processor.stage_locks[Stage.F1] is older
    younger = processor.columns[-1][processor.sequences[lds][1].track + 1]
    assert younger.stall and younger.text == "F1~F1"
