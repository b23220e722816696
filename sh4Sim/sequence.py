from typing import Optional, Tuple

from .pipeline import Group, Row, Stage, Step

class Sequence:
    """
    One row of an instruction's pattern while it moves through the pipeline.

    Row 0 enters at I when the instruction issues. Every other row starts at its
    first step when an earlier row of the same instruction kicks it.
    """

    def __init__(self, instruction, row: int, instruction_order: int):
        """instruction_order is the program order the Processor gave row 0 of `instruction`."""
        self.instruction = instruction
        self.row: int = row
        self.steps: Row = instruction.definition.pattern[row]
        self.step: int = 0
        self.stalled: bool = False

        self.instruction_order: int = instruction_order
        self.program_order: int = instruction_order + row
        self.track: int = instruction.track + row

    @property
    def group(self) -> Group:
        return self.instruction.definition.group

    @property
    def latency(self) -> Optional[int]:
        return self.instruction.definition.latency

    @property
    def reads(self) -> Tuple[str, ...]:
        return self.instruction.reads

    @property
    def writes(self) -> Tuple[str, ...]:
        return self.instruction.writes

    @property
    def current(self) -> Step:
        return self.steps[self.step]

    @property
    def stage(self) -> Stage:
        return self.current.stage

    @property
    def next_step(self) -> Optional[Step]:
        if self.step + 1 < len(self.steps):
            return self.steps[self.step + 1]
        return None

    @property
    def next_stage(self) -> Optional[Stage]:
        step = self.next_step
        return step.stage if step is not None else None

    @property
    def is_last_step(self) -> bool:
        return self.step + 1 >= len(self.steps)

    def advance(self) -> Step:
        if self.is_last_step:
            raise RuntimeError(f"{self} has no step after {self.current}")
        self.step += 1
        return self.current

    def __str__(self) -> str:
        return f"{self.instruction}[{self.row}]"

    def __repr__(self) -> str:
        status = "stalled" if self.stalled else "moving"
        return (f"<Sequence {self} @ {self.stage} (step {self.step}/{len(self.steps) - 1}), "
                f"Order:{self.program_order}, Track:{self.track}, {status}>")
