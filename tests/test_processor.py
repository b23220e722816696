import logging

import pytest

from sh4Sim.default_source import DEFAULT_SOURCE
from sh4Sim.errors import PipelineInvariantError
from sh4Sim.instruction import assemble
from sh4Sim.pipeline import Stage
from sh4Sim.processor import Processor
from sh4Sim.register_file import ProvidesMap

def run_block(source, **kwargs):
    block = assemble(source)[0]
    processor = Processor(block, **kwargs)
    columns, cycle_count = processor.run()
    return processor, columns, cycle_count

def cell(columns, track, cycle):
    return columns[cycle + 1][track + 1]

def stalls(columns, tracks=None):
    """(track, cycle, text) for every stalled cell."""
    found = []
    for cycle, column in enumerate(columns[1:]):
        for row, raw in enumerate(column[1:]):
            if raw.stall and (tracks is None or row in tracks):
                found.append((row, cycle, raw.text))
    return found

def stage_trace(columns, track):
    return [column[track + 1].text for column in columns[1:]]

def test_single_instruction():
    processor, columns, cycle_count = run_block("ADD R2,R3")
    assert cycle_count == 5
    assert stage_trace(columns, 0) == ["I", "D", "EX", "NA", "S"]
    assert stalls(columns) == []
    assert not processor.capped

def test_header_cells():
    _, columns, _ = run_block("ADD R2,R3")
    assert columns[0][0].text == "inst\\cycle"
    assert [column[0].text for column in columns[1:]] == ["0", "1", "2", "3", "4"]
    assert columns[0][1].text == "00000000 add r2,r3"
    assert columns[0][1].explanation == "group: EX, issue: 1, latency: 1"

def test_zero_latency_forwarding():
    _, columns, cycle_count = run_block("MOV R0,R1\nADD R2,R1")
    assert stalls(columns) == []
    assert cycle_count == 5

def test_load_use_stall():
    _, columns, cycle_count = run_block("ADD R2,R1\nMOV.L @R1,R1")
    assert stalls(columns) == [(1, 2, "D|EX")]
    assert cycle_count == 6
    stalled = cell(columns, 1, 2)
    assert stalled.explanation.startswith("Flow Dependency")
    assert "insn:0" in stalled.relevant
    assert "result:0" in stalled.relevant

def test_result_cell_is_marked():
    _, columns, _ = run_block("ADD R2,R1\nMOV.L @R1,R1")
    assert cell(columns, 0, 2).result_ready == 0
    assert cell(columns, 1, 4).text == "MA"
    assert cell(columns, 1, 4).result_ready == 1

def test_serial_execution_resource_stall():
    _, columns, cycle_count = run_block("SHAD R0,R1\nADD R2,R3")
    assert stalls(columns) == [(1, 2, "D!EX")]
    assert cycle_count == 6
    assert cell(columns, 1, 2).explanation.startswith("Resource hazard")

def test_parallel_execution_fills_stages():
    _, columns, cycle_count = run_block("ADD R2,R1\nMOV.L @R4,R5")
    assert stalls(columns) == []
    assert cycle_count == 5
    for cycle in (1, 2):
        for track in (0, 1):
            assert cell(columns, track, cycle).full
            assert cell(columns, track, cycle).explanation.endswith("Fully Utilized")
    assert not cell(columns, 0, 3).full

def test_multi_step_instruction_locks_decode():
    _, columns, cycle_count = run_block("AND.B #1,@(R0,GBR)\nMOV R1,R2")
    assert stalls(columns, tracks={4}) == [(4, c, "I~D") for c in (1, 2, 3, 4)]
    assert cell(columns, 4, 5).text == "D"
    assert cycle_count == 9
    assert cell(columns, 4, 1).explanation.startswith("Stage Locked: D")

def test_kicked_rows_start_in_decode():
    _, columns, _ = run_block("AND.B #1,@(R0,GBR)")
    assert stage_trace(columns, 0)[:5] == ["I", "D", "SX", "MA", "S"]
    assert cell(columns, 1, 2).text == "D"
    assert cell(columns, 1, 2).lock
    assert cell(columns, 3, 4).text == "D"
    assert cell(columns, 3, 5).text == "SX"

def test_partial_locks():
    _, columns, _ = run_block("LDS.L @R15+,PR\nSTC GBR,R2")
    assert stalls(columns, tracks={0, 1}) == []
    assert stalls(columns, tracks={2, 3}) == [(2, 1, "I~D"), (2, 2, "I~D"), (2, 4, "D~SX")]

def test_lock_stall_does_not_propagate():
    # LDS MACH kicks its F1 row while the FMUL rows take turns locking F1
    processor, columns, cycle_count = run_block("FMUL DR2,DR0\nLDS R1,MACH")
    assert not processor.capped
    assert cycle_count == 11
    assert stalls(columns) == [(7, c, "F1~F1") for c in (4, 5, 6, 7)]
    assert not cell(columns, 7, 4).lock
    assert stage_trace(columns, 7)[8:] == ["F1", "F2", "FS"]

def test_leaving_a_locked_step_frees_the_stage():
    processor = Processor(assemble("FMUL DR2,DR0\nLDS R1,MACH")[0])
    for _ in range(5):
        processor.run_cycle()
    # The LDS row took the F1 lock at cycle 3; the FMUL row leaving F1 at cycle 4 freed it
    holder = processor.stage_locks[Stage.F1]
    assert (holder.instruction.pc, holder.row) == (0, 2)
    lds_row = processor.sequences[processor.block[1]][1]
    assert not lds_row.stalled

def test_propagated_stall():
    _, columns, _ = run_block("ADD R2,R1\nMOV.L @R1,R1\nNOP")
    assert (2, 2, "I+D") in stalls(columns)
    assert cell(columns, 2, 2).explanation.startswith("Previous Instruction Stalled")

def test_output_dependency():
    # FMOV writes FR3 while the double-precision FADD still owes FR3
    _, columns, _ = run_block("FADD DR0,DR2\nFMOV FR0,FR3")
    fmov_track = 6
    texts = [text for track, _, text in stalls(columns, tracks={fmov_track})]
    assert texts
    assert texts[0] == "D^EX"

def test_issue_slots():
    processor = Processor(assemble("NOP\nNOP\nNOP")[0])
    processor.run_cycle()
    assert [seq.instruction.pc for seq in processor.in_flight] == [0, 2]
    processor.run_cycle()
    assert [str(seq.stage) for seq in processor.in_flight] == ["D", "D", "I"]

def test_program_order_counts_rows():
    processor, _, _ = run_block("AND.B #1,@(R0,GBR)\nMOV R1,R2")
    assert [processor.sequences[i][0].program_order for i in processor.block] == [0, 4]
    assert [seq.program_order for seq in processor.sequences[processor.block[0]]] == [0, 1, 2, 3]

def test_iteration_cap(caplog):
    with caplog.at_level(logging.WARNING, logger="sh4Sim.processor"):
        processor, columns, cycle_count = run_block("AND.B #1,@(R0,GBR)\nMOV R1,R2", max_cycles=3)
    assert processor.capped
    assert cycle_count == 4
    assert len(columns) == 5
    assert "max cycles" in caplog.text

def test_config_max_cycles_is_read_at_construction(monkeypatch):
    from sh4Sim import config
    monkeypatch.setattr(config, "MAX_CYCLES", 2)
    processor = Processor(assemble("ADD R2,R3")[0])
    assert processor.max_cycles == 2
    processor.run()
    assert processor.capped

def test_runs_are_deterministic():
    first = [[c.text for c in column] for column in run_block("FADD DR0,DR2\nFMOV FR4,FR1")[1]]
    second = [[c.text for c in column] for column in run_block("FADD DR0,DR2\nFMOV FR4,FR1")[1]]
    assert first == second

def test_same_block_can_be_rerun():
    block = assemble("ADD R2,R1\nMOV.L @R1,R1")[0]
    first = Processor(block).run()[1]
    second = Processor(block).run()[1]
    assert first == second == 6

def test_processors_sharing_a_block_are_independent():
    block = assemble("AND.B #1,@(R0,GBR)\nMOV R1,R2")[0]
    solo = Processor(block)
    solo.run()

    first = Processor(block)
    first.run_cycle()
    second = Processor(block)
    assert second.run()[1] == 9
    columns, cycle_count = first.run()
    assert cycle_count == 9
    assert [[c.text for c in column] for column in columns] == [[c.text for c in column] for column in solo.columns]
    assert stalls(columns, tracks={4}) == [(4, c, "I~D") for c in (1, 2, 3, 4)]

def test_every_manual_example_terminates():
    for block in assemble(DEFAULT_SOURCE):
        processor = Processor(block)
        _, cycle_count = processor.run()
        assert not processor.capped, block.title
        assert not processor.in_flight
        assert not processor.stage_locks
        assert len(processor.provides) == 0
        assert cycle_count > 0

def test_reads_wait_for_earlier_writes_only():
    # A later writer never blocks an earlier reader
    _, columns, _ = run_block("MOV.L @R1,R2\nADD R3,R1")
    assert stalls(columns, tracks={0}) == []

def test_retire_with_pending_result_is_an_error():
    processor = Processor(assemble("ADD R2,R1")[0])
    processor.run_cycle()
    seq = processor.in_flight[0]

    class StuckProvides(ProvidesMap):
        def retract(self, sequence):
            pass

    stuck = StuckProvides()
    stuck.provide(seq)
    processor.provides = stuck
    with pytest.raises(PipelineInvariantError):
        processor.run()

def test_provides_map_pending_and_holds():
    processor = Processor(assemble("ADD R2,R1\nMOV.L @R1,R1")[0])
    processor.run_cycle()
    add, load = processor.block
    add_row, load_row = processor.sequences[add][0], processor.sequences[load][0]
    provides = processor.provides
    assert len(provides) == 2
    assert provides.pending_producers(load_row, ["R1"]) == [("R1", add_row)]
    assert provides.pending_producers(add_row, ["R1"]) == []
    provides.retract(add_row)
    assert not provides.holds_instruction(add)
    assert provides.holds_instruction(load)
    assert str(provides) == "Provides: {'R1': ['mov.l @r1,r1[0]']}"
