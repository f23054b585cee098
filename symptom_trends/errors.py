class PipelineError(Exception):
    """Base class for conditions that abort a pipeline run."""


class SourceError(PipelineError):
    """Reading the dataset or querying the search provider failed."""


class SchemaError(PipelineError):
    """An input table is missing a column the pipeline needs."""

    def __init__(self, source: str, missing):
        self.source = source
        self.missing = sorted(missing)
        super().__init__(f"{source}: missing column(s) {', '.join(self.missing)}")


class EmptyDatasetError(PipelineError):
    """A consumer that needs rows (model fitting) was handed none."""
