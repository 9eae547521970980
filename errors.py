"""Exception taxonomy for the ingest and enrichment pipeline.

Per-item errors are caught where a single feed, feed item or article is
processed and turned into a result record. Only failures to list the
initial candidates escape a batch.
"""


class PipelineError(Exception):
    """Base error for pipeline stages."""


class FeedFetchError(PipelineError):
    """A feed document could not be downloaded or parsed."""


class ArticleInsertError(PipelineError):
    """A new article could not be stored."""


class ProviderError(PipelineError):
    """The completion provider failed or returned no content."""


class ParseRepairError(PipelineError):
    """No JSON object could be extracted from a model response."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class SchemaIncompleteError(PipelineError):
    """A parsed analysis is missing required fields."""

    def __init__(self, missing, prefix: str = "Missing required fields"):
        self.missing = list(missing)
        super().__init__(f"{prefix}: {', '.join(self.missing)}")


class PersistenceError(PipelineError):
    """An article update could not be written."""


class ArticleNotFoundError(PipelineError):
    """No article exists with the requested id."""
