from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

class ProvidesMap:
    """
    Register result status for the pipeline.

    Maps each register name to the sequences that have promised a value for it
    and not yet produced it, oldest first. An instruction's result row is added
    when the instruction issues and removed at the end of the cycle in which it
    reaches its result step.
    """

    def __init__(self):
        self._producers: Dict[str, List] = defaultdict(list)

    def provide(self, sequence) -> None:
        """Registers `sequence` as a pending producer of every register it writes."""
        for reg in sequence.writes:
            self._producers[reg].append(sequence)

    def retract(self, sequence) -> None:
        """Removes `sequence` from every register it was providing."""
        for reg in sequence.writes:
            producers = self._producers.get(reg)
            if producers is None:
                continue
            producers[:] = [seq for seq in producers if seq is not sequence]

    def pending_producers(self, sequence, registers: Iterable[str]) -> List[Tuple[str, object]]:
        """
        Returns (register, producer) pairs for producers that belong to a
        different, earlier instruction than `sequence`.
        """
        pending = []
        for reg in registers:
            for producer in self._producers.get(reg, ()):
                if producer.instruction is sequence.instruction:
                    continue
                if producer.program_order < sequence.program_order:
                    pending.append((reg, producer))
        return pending

    def holds_instruction(self, instruction) -> bool:
        return any(seq.instruction is instruction for producers in self._producers.values() for seq in producers)

    def __len__(self) -> int:
        return sum(len(producers) for producers in self._producers.values())

    def __str__(self) -> str:
        pending = {reg: [str(seq) for seq in producers] for reg, producers in self._producers.items() if producers}
        return f"Provides: {pending}"

if __name__ == '__main__':
    class _Seq:
        def __init__(self, name, order, writes):
            self.instruction = name
            self.program_order = order
            self.writes = writes

        def __str__(self):
            return self.instruction

    provides = ProvidesMap()
    add = _Seq("add r2,r1", 0, ["R1"])
    load = _Seq("mov.l @r1,r1", 1, ["R1"])
    provides.provide(add)
    provides.provide(load)
    print(provides)
    print("pending for load:", [(reg, str(seq)) for reg, seq in provides.pending_producers(load, ["R1"])])
    provides.retract(add)
    print(provides)
