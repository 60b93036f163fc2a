"""Exception taxonomy for the search -> scrape -> summarize pipeline."""


class WebSumError(Exception):
    """Base exception for websum errors."""

    pass


class SearchUnavailable(WebSumError):
    """Raised when the result source is unreachable or answers with an error."""

    pass


class ScrapeFailed(WebSumError):
    """Raised when a page cannot be fetched or parsed into usable text."""

    pass


class ScrapeTimeout(ScrapeFailed):
    """Raised when a page fetch exceeds its timeout."""

    pass


class InsufficientContent(ScrapeFailed):
    """Raised when a fetched page yields too little text to summarize."""

    pass


class SummarizationFailed(WebSumError):
    """Raised for summarizer failures that are not quota or rate-limit related."""

    pass


class SearchLimitReached(WebSumError):
    """Raised when a user has used up the searches their plan allows."""

    pass
