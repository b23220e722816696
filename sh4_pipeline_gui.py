import streamlit as st

from sh4Sim import config
from sh4Sim.default_source import DEFAULT_SOURCE
from sh4Sim.errors import AssembleError
from sh4Sim.instruction import assemble
from sh4Sim.processor import Processor
from sh4Sim.simulate import simulate
from sh4Sim.trace import build_table, table_to_records

st.set_page_config(page_title="SH-4 Pipeline Simulator", layout="wide")
st.title("SH-4 Pipeline Timing Simulator")

# --- Session State Initialization ---
if 'result' not in st.session_state:
    st.session_state.result = None
    st.session_state.blocks = []
    st.session_state.processor = None
    st.session_state.block_index = 0

# --- Sidebar: Scheduler Config ---
st.sidebar.header("Scheduler Configuration")
max_cycles = st.sidebar.number_input("Max Cycles", min_value=1, value=config.MAX_CYCLES, key="max_cycles")
columns_per_group = st.sidebar.number_input("Columns per Group", min_value=1, value=config.COLUMNS_PER_GROUP,
                                            key="columns_per_group")
config.set_max_cycles(int(max_cycles))
config.set_columns_per_group(int(columns_per_group))
st.sidebar.caption("Stall markers: * capacity, ~ lock, ! resource, | flow, ^ output, + previous stalled")

# --- Program Input ---
st.header("1. Load Assembly Program")
prog_source = st.radio("Input Method", ["Paste", "Upload File"])
if prog_source == "Paste":
    program = st.text_area("Paste your SH-4 program here ('#' starts a titled block):", value=DEFAULT_SOURCE, height=300)
else:
    uploaded = st.file_uploader("Upload .s/.asm file", type=["s", "asm", "txt"])
    program = uploaded.read().decode() if uploaded else ''

def show_table(table):
    records = table_to_records(table)
    if records:
        st.dataframe(records)

# --- Simulation Controls ---
st.header("2. Simulation Controls")
col1, col2, col3, col4 = st.columns(4)
if col1.button("Simulate All Blocks"):
    st.session_state.result = simulate(program)
    st.session_state.processor = None

if col2.button("Initialize Stepping"):
    try:
        st.session_state.blocks = assemble(program)
        st.session_state.block_index = 0
        st.session_state.processor = Processor(st.session_state.blocks[0])
        st.session_state.result = None
        st.success("Stepping initialized on the first block.")
    except AssembleError as e:
        st.error(str(e))

if col3.button("Step") and st.session_state.processor is not None:
    processor = st.session_state.processor
    if not processor.is_simulation_complete():
        processor.run_cycle()

if col4.button("Reset State"):
    st.session_state.result = None
    st.session_state.blocks = []
    st.session_state.processor = None
    st.session_state.block_index = 0

# --- Display State ---
if st.session_state.processor is not None:
    blocks = st.session_state.blocks
    labels = [f"{i}: {b.title or ''} {b.subtitle or ''}".strip() for i, b in enumerate(blocks)]
    chosen = st.selectbox("Block", range(len(blocks)), index=st.session_state.block_index,
                          format_func=lambda i: labels[i])
    if chosen != st.session_state.block_index:
        st.session_state.block_index = chosen
        st.session_state.processor = Processor(blocks[chosen])

    processor = st.session_state.processor
    st.subheader(f"Cycle: {processor.current_cycle}")
    show_table(build_table(processor.columns))
    st.write("### In Flight")
    st.dataframe([{"Sequence": str(seq), "Stage": str(seq.stage), "Step": seq.step,
                   "Order": seq.program_order, "Stalled": seq.stalled} for seq in processor.in_flight])
    if processor.is_simulation_complete():
        st.success(f"Block finished in {processor.current_cycle} cycles.")

result = st.session_state.result
if result is not None:
    if result.error:
        st.error(result.error)
    for block in result.blocks:
        heading = " / ".join(part for part in (block.title, block.subtitle) if part) or block.id
        st.write(f"### {heading}")
        st.caption(f"{block.cycle_count} cycles" + (" (stopped at max cycles)" if block.capped else ""))
        show_table(block.table)
