# sh4Sim Pipeline Configuration

# Scheduler Limits
MAX_CYCLES = 1000   # Iteration cap; a block still in flight past this cycle is reported as capped
ISSUE_SLOTS = 2     # Instructions that may sit in the I stage at once
STAGE_CAPACITY = 2  # Sequences that may occupy any one stage in a cycle

# Program Layout
PC_STEP = 2  # SH-4 instructions are 16 bits wide

# Trace Output
# Columns per visual group when a cycle table is chunked for display.
# You can override this at runtime using set_columns_per_group().
COLUMNS_PER_GROUP = 10

def set_max_cycles(cycles: int):
    """
    Override the global iteration cap at runtime.
    Example usage:
        import sh4Sim.config as config
        config.set_max_cycles(5000)
    """
    global MAX_CYCLES
    if cycles < 1:
        raise ValueError(f"max cycles must be positive, got {cycles}")
    MAX_CYCLES = cycles

def set_columns_per_group(columns: int):
    """
    Override the number of cycle columns shown per visual group.
    """
    global COLUMNS_PER_GROUP
    if columns < 1:
        raise ValueError(f"columns per group must be positive, got {columns}")
    COLUMNS_PER_GROUP = columns
