from collections import namedtuple
from typing import Dict, List, Optional

from . import config

class RawCell:
    """One cell of a column as the Processor writes it. All fields are optional."""

    def __init__(self, id: Optional[str] = None, text: str = "", explanation: str = "",
                 stall: bool = False, lock: bool = False, full: bool = False,
                 result_ready: Optional[int] = None, relevant: Optional[List[str]] = None,
                 pc: Optional[int] = None, screen_hidden: bool = False,
                 screen_hidden_text: bool = False, sequence=None):
        self.id = id
        self.text = text
        self.explanation = explanation
        self.stall = stall
        self.lock = lock
        self.full = full
        self.result_ready = result_ready
        self.relevant: List[str] = list(relevant) if relevant else []
        self.pc = pc
        self.screen_hidden = screen_hidden
        self.screen_hidden_text = screen_hidden_text
        self.sequence = sequence

    def copy(self, **changes) -> 'RawCell':
        fields = dict(id=self.id, text=self.text, explanation=self.explanation, stall=self.stall,
                      lock=self.lock, full=self.full, result_ready=self.result_ready,
                      relevant=self.relevant, pc=self.pc, screen_hidden=self.screen_hidden,
                      screen_hidden_text=self.screen_hidden_text, sequence=self.sequence)
        fields.update(changes)
        return RawCell(**fields)

    def __repr__(self) -> str:
        flags = [name for name in ("stall", "lock", "full") if getattr(self, name)]
        return f"<RawCell {self.id} '{self.text}' {' '.join(flags)}>"

SimCell = namedtuple('SimCell', [
    'id', 'text', 'explanation', 'stall', 'lock', 'full',
    'screen_hidden', 'screen_hidden_text', 'column_index', 'row_index', 'cycle',
    'current_row_key', 'relevant_keys', 'self_keys', 'result_ready_key',
])

SimRow = namedtuple('SimRow', ['row_index', 'row_key', 'instruction_pc', 'classes', 'print_hidden', 'cells'])

SimTable = namedtuple('SimTable', ['rows', 'column_count', 'columns_per_group'])

_EMPTY = RawCell()

def _row_key(pc: Optional[int], row_index: int) -> str:
    if pc is not None:
        return f"row-insn-{pc}-{row_index}"
    return f"row-{row_index}"

def _row_classes(labels: List[RawCell], row_index: int) -> List[str]:
    pc = labels[row_index].pc
    if pc is None:
        return []
    classes = []
    if row_index == 0 or labels[row_index - 1].pc != pc:
        classes.append("start")
    if row_index == len(labels) - 1 or labels[row_index + 1].pc != pc:
        classes.append("end")
    return classes

def _has_content(cell: RawCell) -> bool:
    return bool(cell.text.strip()) or cell.stall or cell.lock or cell.full

def build_table(columns: List[List[RawCell]], columns_per_group: Optional[int] = None) -> SimTable:
    """
    Converts raw columns into display rows.

    columns[0] is the label column; column c > 0 is cycle c - 1. Every cell gets
    the keys that identify it (self_keys) and the keys of the cells that explain
    it (relevant_keys), so a viewer can cross-highlight them.
    """
    if columns_per_group is None:
        columns_per_group = config.COLUMNS_PER_GROUP
    if not columns:
        return SimTable([], 0, columns_per_group)

    labels = columns[0]
    rows = []
    for row_index in range(len(labels)):
        pc = labels[row_index].pc
        row_key = _row_key(pc, row_index)

        cells = []
        only_label = True
        for col_index, column in enumerate(columns):
            raw = column[row_index] if row_index < len(column) else _EMPTY

            self_keys = []
            if raw.id is not None:
                if col_index == 0:
                    self_keys.append(f"insn:{pc if pc is not None else raw.id}")
                else:
                    self_keys.append(f"cell:{raw.id}")
            result_ready_key = None
            if raw.result_ready is not None:
                result_ready_key = f"result:{raw.result_ready}"
                self_keys.append(result_ready_key)

            if col_index > 0 and _has_content(raw):
                only_label = False

            cells.append(SimCell(
                id=raw.id if raw.id is not None else f"{row_key}-{col_index}",
                text=raw.text,
                explanation=raw.explanation,
                stall=raw.stall,
                lock=raw.lock,
                full=raw.full,
                screen_hidden=raw.screen_hidden,
                screen_hidden_text=raw.screen_hidden_text,
                column_index=col_index,
                row_index=row_index,
                cycle=col_index - 1 if col_index > 0 else None,
                current_row_key=row_key if pc is not None else None,
                relevant_keys=list(raw.relevant),
                self_keys=self_keys,
                result_ready_key=result_ready_key,
            ))

        rows.append(SimRow(
            row_index=row_index,
            row_key=row_key,
            instruction_pc=pc,
            classes=_row_classes(labels, row_index),
            print_hidden=only_label and row_index != 0,
            cells=cells,
        ))

    return SimTable(rows, len(columns), columns_per_group)

def table_to_records(table: SimTable) -> List[Dict[str, str]]:
    """
    One dict per track for tabular display, keyed by the header row's texts.
    Continuation rows of a multi-row instruction leave the label empty.
    """
    if not table.rows:
        return []
    header = [cell.text for cell in table.rows[0].cells]
    records = []
    for row in table.rows[1:]:
        record = {}
        for name, cell in zip(header, row.cells):
            record[name] = "" if cell.screen_hidden_text else cell.text
        records.append(record)
    return records

def _marker(cell: SimCell) -> str:
    if cell.stall:
        return "*"
    if cell.lock:
        return "L"
    if cell.full:
        return "F"
    return ""

def format_table(table: SimTable) -> str:
    """
    Renders the table as fixed-width text, in chunks of columns_per_group cycles.
    Stalled cells are suffixed with '*', lock holders with 'L' and full stages with 'F'.
    Rows with nothing outside the label column are left out.
    """
    if not table.rows:
        return ""
    rows = [row for row in table.rows if not row.print_hidden]

    def render(cell: SimCell) -> str:
        if cell.cycle is None:
            return "" if cell.screen_hidden_text else cell.text
        return cell.text + _marker(cell)

    rendered = [[render(cell) for cell in row.cells] for row in rows]
    widths = [max(len(line[col]) for line in rendered) for col in range(table.column_count)]

    chunks = []
    for start in range(1, max(table.column_count, 2), table.columns_per_group):
        selected = [0] + list(range(start, min(start + table.columns_per_group, table.column_count)))
        lines = []
        for line in rendered:
            lines.append("  ".join(line[col].ljust(widths[col]) for col in selected).rstrip())
        chunks.append("\n".join(lines))
    return "\n\n".join(chunks)
