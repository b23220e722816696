from sh4Sim.instruction import assemble
from sh4Sim.processor import Processor
from sh4Sim.trace import RawCell, build_table, format_table, table_to_records

def table_for(source, **kwargs):
    processor = Processor(assemble(source)[0])
    columns, _ = processor.run()
    return build_table(columns, **kwargs)

def test_header_row():
    table = table_for("ADD R2,R3")
    header = table.rows[0]
    assert header.row_key == "row-0"
    assert header.instruction_pc is None
    assert not header.print_hidden
    assert [cell.text for cell in header.cells] == ["inst\\cycle", "0", "1", "2", "3", "4"]
    assert [cell.cycle for cell in header.cells] == [None, 0, 1, 2, 3, 4]
    assert table.column_count == 6

def test_row_keys_and_classes():
    table = table_for("AND.B #1,@(R0,GBR)\nMOV R1,R2")
    keys = [row.row_key for row in table.rows]
    assert keys == ["row-0", "row-insn-0-1", "row-insn-0-2", "row-insn-0-3", "row-insn-0-4", "row-insn-2-5"]
    assert [row.classes for row in table.rows] == [[], ["start"], [], [], ["end"], ["start", "end"]]
    assert [row.cells[0].screen_hidden_text for row in table.rows[1:]] == [False, True, True, True, False]
    assert table.rows[5].cells[3].current_row_key == "row-insn-2-5"

def test_self_and_relevant_keys():
    table = table_for("ADD R2,R1\nMOV.L @R1,R1")
    add_row, load_row = table.rows[1], table.rows[2]
    assert add_row.cells[0].self_keys == ["insn:0"]
    assert add_row.cells[1].self_keys == ["cell:step-0-0"]

    result = add_row.cells[3]
    assert result.text == "EX"
    assert result.result_ready_key == "result:0"
    assert "result:0" in result.self_keys

    stalled = load_row.cells[3]
    assert stalled.stall and stalled.text == "D|EX"
    assert set(stalled.relevant_keys) & set(result.self_keys)
    assert stalled.column_index == 3 and stalled.row_index == 2

def test_print_hidden_rows():
    columns = [
        [RawCell(text="inst\\cycle"), RawCell(id="0", text="00000000 nop", pc=0), RawCell(id="2", text="00000002 nop", pc=2)],
        [RawCell(text="0"), RawCell(id="step-0-0", text="I"), RawCell()],
    ]
    table = build_table(columns)
    assert [row.print_hidden for row in table.rows] == [False, False, True]

def test_flags_count_as_content():
    columns = [
        [RawCell(text="inst\\cycle"), RawCell(id="0", text="00000000 nop", pc=0)],
        [RawCell(text="0"), RawCell(id="step-0-0", text=" ", lock=True)],
    ]
    assert not build_table(columns).rows[1].print_hidden

def test_empty_columns():
    table = build_table([], columns_per_group=4)
    assert table.rows == [] and table.column_count == 0 and table.columns_per_group == 4
    assert table_to_records(table) == []
    assert format_table(table) == ""

def test_columns_per_group_defaults_to_config(monkeypatch):
    from sh4Sim import config
    monkeypatch.setattr(config, "COLUMNS_PER_GROUP", 3)
    assert table_for("NOP").columns_per_group == 3

def test_records():
    records = table_to_records(table_for("AND.B #1,@(R0,GBR)"))
    assert len(records) == 4
    assert records[0]["inst\\cycle"] == "00000000 and.b #1,@(r0,gbr)"
    assert records[1]["inst\\cycle"] == ""
    assert records[0]["0"] == "I"
    assert records[1]["2"] == "D"

def test_format_table_chunks_columns():
    text = format_table(table_for("ADD R2,R1\nMOV.L @R1,R1", columns_per_group=3))
    chunks = text.split("\n\n")
    assert len(chunks) == 2
    assert chunks[0].splitlines()[0].split()[1:] == ["0", "1", "2"]
    assert "D|EX*" in chunks[0]
    assert "00000002 mov.l @r1,r1" in chunks[1]
