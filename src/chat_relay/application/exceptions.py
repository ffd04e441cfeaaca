from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    pass


class ProviderNotConfiguredError(AppError):
    pass


class CompletionError(AppError):
    """The completion provider failed before or during streaming."""
