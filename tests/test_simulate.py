import pytest

from sh4Sim import config
from sh4Sim import simulate as simulate_module
from sh4Sim.__main__ import main
from sh4Sim.default_source import DEFAULT_SOURCE
from sh4Sim.simulate import COLUMNS_PER_GROUP, SH4_MNEMONICS, SH4_REGISTERS, simulate

def test_simulate_manual_examples():
    result = simulate(DEFAULT_SOURCE)
    assert result.error is None
    assert len(result.blocks) == 23
    first = result.blocks[0]
    assert first.id == "block-0"
    assert first.title == "Serial execution: non-parallel-executable instructions"
    assert first.subtitle is None
    assert not any(block.capped for block in result.blocks)
    assert [block.id for block in result.blocks] == [f"block-{i}" for i in range(23)]

def test_subtitled_blocks():
    result = simulate(DEFAULT_SOURCE)
    flow = result.blocks[3]
    assert (flow.title, flow.subtitle) == ("Flow dependency", "Zero-cycle latency")
    assert (result.blocks[4].title, result.blocks[4].subtitle) == (None, "1-cycle latency")
    assert result.blocks[4].cycle_count == 6

def test_simulate_reports_decode_errors():
    result = simulate("nop\nbogus r1")
    assert result.blocks == []
    assert result.error == "Unknown instruction: bogus r1"

def test_simulate_respects_max_cycles():
    result = simulate("AND.B #1,@(R0,GBR)\nMOV R1,R2", max_cycles=2)
    assert result.blocks[0].capped
    assert result.blocks[0].cycle_count == 3

def test_simulate_is_deterministic():
    assert simulate(DEFAULT_SOURCE) == simulate(DEFAULT_SOURCE)

def test_exports():
    assert COLUMNS_PER_GROUP == 10
    assert "fipr" in SH4_MNEMONICS
    assert "XMTRX" in SH4_REGISTERS

def test_columns_per_group_export_follows_setter(monkeypatch):
    monkeypatch.setattr(config, "COLUMNS_PER_GROUP", config.COLUMNS_PER_GROUP)
    config.set_columns_per_group(4)
    assert simulate_module.COLUMNS_PER_GROUP == 4
    from sh4Sim.simulate import COLUMNS_PER_GROUP as current
    assert current == 4
    assert simulate("NOP").blocks[0].table.columns_per_group == 4

def test_setters_validate(monkeypatch):
    monkeypatch.setattr(config, "MAX_CYCLES", config.MAX_CYCLES)
    monkeypatch.setattr(config, "COLUMNS_PER_GROUP", config.COLUMNS_PER_GROUP)
    config.set_max_cycles(50)
    config.set_columns_per_group(5)
    assert config.MAX_CYCLES == 50
    assert config.COLUMNS_PER_GROUP == 5
    with pytest.raises(ValueError):
        config.set_max_cycles(0)
    with pytest.raises(ValueError):
        config.set_columns_per_group(-1)

def test_cli_default_program(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "=== Serial execution: non-parallel-executable instructions ===" in out
    assert "=== Flow dependency / Zero-cycle latency ===" in out
    assert "D!EX*" in out

def test_cli_file(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(config, "MAX_CYCLES", config.MAX_CYCLES)
    monkeypatch.setattr(config, "COLUMNS_PER_GROUP", config.COLUMNS_PER_GROUP)
    source = tmp_path / "load_use.s"
    source.write_text("ADD R2,R1\nMOV.L @R1,R1\n")
    assert main([str(source), "--columns", "4"]) == 0
    out = capsys.readouterr().out
    assert "=== block-0 ===" in out
    assert "6 cycles" in out

def test_cli_decode_error(tmp_path, capsys):
    source = tmp_path / "bad.s"
    source.write_text("mov r99,r1\n")
    assert main([str(source)]) == 1
    assert "Unknown instruction: mov r99,r1" in capsys.readouterr().err
