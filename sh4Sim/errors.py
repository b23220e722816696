class CatalogError(RuntimeError):
    """Inconsistent timing data in the instruction catalog. Raised while the catalog is built."""

class AssembleError(ValueError):
    """A source line that does not match any catalog entry."""

    def __init__(self, text: str, line: str = None):
        self.text = text
        self.line = line
        super().__init__(f"Unknown instruction: {text}")

class PipelineInvariantError(RuntimeError):
    """An instruction retired while one of its results was still pending."""
