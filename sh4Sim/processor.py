import logging
from typing import Dict, List, Optional, Tuple

from .errors import PipelineInvariantError
from .instruction import DecodedInstruction, ProgramBlock
from .pipeline import Stage, is_parallel
from .register_file import ProvidesMap
from .sequence import Sequence
from .trace import RawCell, build_table, format_table

logger = logging.getLogger(__name__)

# Stall markers, placed between the current and the wanted stage in a cell's text
CAPACITY_STALL = "*"
LOCK_STALL = "~"
RESOURCE_STALL = "!"
FLOW_STALL = "|"
OUTPUT_STALL = "^"
PROPAGATED_STALL = "+"

def _cell_id(track: int, cycle: int) -> str:
    return f"step-{track}-{cycle}"

def _describe(seq: Sequence) -> str:
    return f"[{seq.group}: {seq.instruction} @ {seq.stage}]"

class Processor:
    """
    Cycle-by-cycle in-order scheduler for one ProgramBlock.

    Each cycle every in-flight sequence, oldest first, either advances one step
    or stalls on the first hazard found. Up to issue_slots instructions then
    enter I. Every cycle produces one column of RawCell, indexed by track + 1;
    row 0 holds the cycle number.
    """

    def __init__(self, block: ProgramBlock, max_cycles=None, issue_slots=None, stage_capacity=None):
        from . import config as global_config
        self.block = block
        self.max_cycles = max_cycles if max_cycles is not None else global_config.MAX_CYCLES
        self.issue_slots = issue_slots if issue_slots is not None else global_config.ISSUE_SLOTS
        self.stage_capacity = stage_capacity if stage_capacity is not None else global_config.STAGE_CAPACITY

        self.current_cycle: int = 0
        self.next_instruction: int = 0  # index into block
        self.next_program_order: int = 0
        self.in_flight: List[Sequence] = []
        # Rows of each issued instruction, by row index
        self.sequences: Dict[DecodedInstruction, List[Sequence]] = {}
        self.provides = ProvidesMap()
        self.stage_locks: Dict[Stage, Sequence] = {}
        self.capped: bool = False

        self.columns: List[List[RawCell]] = [self._label_column()]

    def _label_column(self) -> List[RawCell]:
        column = [RawCell() for _ in range(self.block.tracks)]
        for instruction in self.block:
            label = RawCell(
                id=str(instruction.pc),
                text=instruction.format(),
                explanation=instruction.definition.describe(),
                pc=instruction.pc,
            )
            column[instruction.track] = label
            for row in range(1, instruction.rows):
                column[instruction.track + row] = label.copy(screen_hidden_text=True)
        header = RawCell(text="inst\\cycle", explanation="Instruction vs Cycle Number")
        return [header] + column

    def _lock_holder(self, seq: Sequence) -> bool:
        return self.stage_locks.get(seq.stage) is seq

    def _stall(self, seq: Sequence, marker: str, explanation: str, relevant: List[str],
               propagate: bool = True) -> RawCell:
        # A lock stall leaves the flag as the last cycle set it
        if propagate:
            seq.stalled = True
        return RawCell(
            id=_cell_id(seq.track, self.current_cycle),
            text=f"{seq.stage}{marker}{seq.next_stage}",
            explanation=explanation,
            stall=True,
            lock=self._lock_holder(seq),
            relevant=relevant,
            sequence=seq,
        )

    def _relevant(self, others: List[Sequence]) -> List[str]:
        keys = []
        for other in others:
            keys.append(f"insn:{other.instruction.pc}")
            keys.append(f"cell:{_cell_id(other.track, self.current_cycle)}")
        return keys

    def _check_hazards(self, seq: Sequence, first_stall: Optional[Sequence]) -> Optional[RawCell]:
        """Returns a stall cell for the first hazard that blocks `seq`, or None if it may advance."""
        target = seq.next_stage
        occupants = [x for x in self.in_flight
                     if x is not seq and x.stage == target and x.program_order < seq.program_order]

        if len(occupants) >= self.stage_capacity:
            explanation = "\n".join([f"Already two instructions @ Stage {target}"] + [_describe(x) for x in occupants])
            return self._stall(seq, CAPACITY_STALL, explanation, self._relevant(occupants))

        holder = self.stage_locks.get(target)
        if holder is not None and holder is not seq:
            explanation = f"Stage Locked: {target}\n{_describe(holder)}"
            return self._stall(seq, LOCK_STALL, explanation, self._relevant([holder]), propagate=False)

        if target != Stage.D:
            conflicting = [x for x in occupants if not is_parallel(x.group, seq.group)]
            if conflicting:
                explanation = "\n".join([f"Resource hazard: {seq.group} @ Stage {target}"]
                                        + [_describe(x) for x in conflicting])
                return self._stall(seq, RESOURCE_STALL, explanation, self._relevant(conflicting))

        if seq.stage != Stage.I or seq.latency == 0:
            pending = self.provides.pending_producers(seq, seq.reads)
            if pending:
                return self._stall(seq, FLOW_STALL, self._dependency_text("Flow Dependency", pending),
                                   self._result_keys(pending))

        if seq.stage != Stage.I:
            pending = self.provides.pending_producers(seq, seq.writes)
            if pending:
                return self._stall(seq, OUTPUT_STALL, self._dependency_text("Output Dependency", pending),
                                   self._result_keys(pending))

        if first_stall is not None:
            explanation = f"Previous Instruction Stalled\n{_describe(first_stall)}"
            return self._stall(seq, PROPAGATED_STALL, explanation, self._relevant([first_stall]))

        return None

    @staticmethod
    def _dependency_text(title: str, pending: List[Tuple[str, Sequence]]) -> str:
        return "\n".join([title] + [f"{reg}: {producer.instruction}" for reg, producer in pending])

    @staticmethod
    def _result_keys(pending: List[Tuple[str, Sequence]]) -> List[str]:
        keys = []
        for _, producer in pending:
            keys.append(f"insn:{producer.instruction.pc}")
            keys.append(f"result:{producer.instruction_order}")
        return list(dict.fromkeys(keys))

    def _moved(self, seq: Sequence, text: str, result_ready: Optional[int]) -> RawCell:
        explanation = f"No Stall, Group: {seq.group}"
        if seq.stage in self.stage_locks:
            explanation += f"\nStage Lock: {seq.stage}"
        return RawCell(
            id=_cell_id(seq.track, self.current_cycle),
            text=text,
            explanation=explanation,
            lock=self._lock_holder(seq),
            result_ready=result_ready,
            sequence=seq,
        )

    def _advance(self, seq: Sequence, publish: List[Sequence], retire: List[Sequence]) -> Optional[int]:
        seq.stalled = False
        # Leaving a locking step frees the stage, even if a kicked row took the lock over
        if seq.current.locks:
            self.stage_locks.pop(seq.stage, None)
        step = seq.advance()

        result_ready = None
        if step.result:
            result_ready = seq.instruction_order
            publish.append(seq)
        if step.locks:
            self.stage_locks[step.stage] = seq
        if seq.is_last_step:
            retire.append(seq)
        return result_ready

    def _start_kicked(self, seq: Sequence, column: List[RawCell], retire: List[Sequence]) -> List[Sequence]:
        """Starts the chain of rows kicked by seq's current step. They enter their first step with no hazard checks."""
        started = []
        kick = seq.current.kick
        while kick is not None:
            kicked = self.sequences[seq.instruction][kick]
            if kicked.current.locks:
                self.stage_locks[kicked.stage] = kicked
            if kicked.is_last_step:
                retire.append(kicked)
            column[kicked.track] = self._moved(kicked, str(kicked.stage), None)
            logger.debug("Cycle %d: %s kicked %s into %s", self.current_cycle, seq, kicked, kicked.stage)
            started.append(kicked)
            seq = kicked
            kick = kicked.current.kick
        return started

    def _mark_full_stages(self, column: List[RawCell]):
        for stage in Stage:
            moving = [seq for seq in self.in_flight if seq.stage == stage and not seq.stalled]
            if len(moving) != self.stage_capacity:
                continue
            for seq in moving:
                cell = column[seq.track]
                if cell.sequence is seq:
                    cell.full = True
                    cell.explanation += "\nFully Utilized"

    def _retire(self, seq: Sequence):
        self.in_flight.remove(seq)
        instruction = seq.instruction
        if not any(other.instruction is instruction for other in self.in_flight):
            if self.provides.holds_instruction(instruction):
                raise PipelineInvariantError(
                    f"'{instruction}' retired at cycle {self.current_cycle} with its result still pending")
            logger.debug("Cycle %d: %s completed", self.current_cycle, instruction)
        if seq.current.locks:
            self.stage_locks.pop(seq.stage, None)

    def _issue(self, column: List[RawCell]):
        in_issue = sum(1 for seq in self.in_flight if seq.stage == Stage.I)
        for _ in range(self.issue_slots - in_issue):
            if self.next_instruction >= len(self.block):
                break
            instruction: DecodedInstruction = self.block[self.next_instruction]
            self.next_instruction += 1

            sequences = [Sequence(instruction, row, self.next_program_order) for row in range(instruction.rows)]
            self.sequences[instruction] = sequences
            self.next_program_order += instruction.rows

            result_row = instruction.definition.result_row
            if result_row is not None:
                self.provides.provide(sequences[result_row])

            first = sequences[0]
            self.in_flight.append(first)
            column[first.track] = self._moved(first, str(Stage.I), None)
            logger.debug("Cycle %d: issued %r", self.current_cycle, instruction)

    def run_cycle(self):
        """Simulates a single clock cycle and appends its column."""
        column = [RawCell() for _ in range(self.block.tracks)]
        publish: List[Sequence] = []
        retire: List[Sequence] = []
        first_stall: Optional[Sequence] = None

        # Rows kicked during the pass join in_flight right after their trigger;
        # later checks see them but they do not move again this cycle.
        for seq in list(self.in_flight):
            cell = self._check_hazards(seq, first_stall)
            if cell is not None:
                logger.debug("Cycle %d: %s stalled (%s)", self.current_cycle, seq, cell.text)
            else:
                result_ready = self._advance(seq, publish, retire)
                kicked = self._start_kicked(seq, column, retire)
                if kicked:
                    position = self.in_flight.index(seq) + 1
                    self.in_flight[position:position] = kicked
                cell = self._moved(seq, str(seq.stage), result_ready)
            column[seq.track] = cell

            if first_stall is None and seq.stalled:
                first_stall = seq

        self._mark_full_stages(column)

        for seq in publish:
            self.provides.retract(seq)
        for seq in retire:
            self._retire(seq)

        self._issue(column)

        header = RawCell(text=str(self.current_cycle), explanation="Cycle Number")
        self.columns.append([header] + column)
        self.current_cycle += 1

    def is_simulation_complete(self) -> bool:
        """True once every instruction has issued and no sequence is in flight."""
        return not self.in_flight and self.next_instruction >= len(self.block)

    def run(self) -> Tuple[List[List[RawCell]], int]:
        """Runs until completion or until the iteration cap; returns (columns, cycle_count)."""
        logger.debug("Simulating %d instructions on %d tracks", len(self.block), self.block.tracks)
        while not self.is_simulation_complete():
            if self.current_cycle > self.max_cycles:
                self.capped = True
                logger.warning("Simulation stopped at max cycles: %d (%d sequences still in flight)",
                               self.max_cycles, len(self.in_flight))
                break
            self.run_cycle()
        else:
            logger.debug("Simulation completed in %d cycles.", self.current_cycle)
        return self.columns, self.current_cycle

    def run_simulation(self):
        """Runs the block and prints its trace."""
        self.run()
        self.print_timing_results()

    def stall_count(self) -> int:
        return sum(1 for column in self.columns[1:] for cell in column if cell.stall)

    def print_timing_results(self):
        """Prints the per-track stage trace, one row per cycle column."""
        print(format_table(build_table(self.columns)))
        print(f"{self.current_cycle} cycles, {self.stall_count()} stall cells" + (" (capped)" if self.capped else ""))

if __name__ == '__main__':
    from .instruction import assemble

    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    for demo_block in assemble("# load-use\nadd r2,r1\nmov.l @r1,r1\n# serialized\nand.b #1,@(r0,gbr)\nmov r1,r2"):
        print(f"\n=== {demo_block.title} ===")
        Processor(demo_block).run_simulation()
