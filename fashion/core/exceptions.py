"""Custom exception classes for the scraping pipeline."""


class FashionException(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class ScraperError(FashionException):
    """Raised when a store scraper encounters an error."""

    def __init__(self, platform: str, message: str):
        super().__init__(f"Scraper error for {platform}: {message}")


class IdentityError(FashionException):
    """Raised when a product's identity (URL, domain) cannot be resolved.

    Aborts the single item only; the batch continues.
    """

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"Cannot resolve product identity for '{url}': {message}")


class UploadError(FashionException):
    """Raised by image hosting clients when an upload is rejected."""

    def __init__(self, public_id: str, message: str):
        super().__init__(f"Upload failed for {public_id}: {message}")
