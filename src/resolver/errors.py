"""Exception types raised by the resolver."""


class ResolverError(Exception):
    """Base class for resolver failures."""


class MalformedSpecifierError(ResolverError, ValueError):
    """Import specifier does not name a source file or manifest."""

    def __init__(self, specifier: str, extensions=(".sol",)):
        self.specifier = specifier
        exts = ", ".join(extensions)
        super().__init__(f'Invalid import: "{specifier}" does not end with {exts}')


class FetchError(ResolverError, OSError):
    """Content could not be fetched or read."""

    def __init__(self, target: str, reason: str = "", status: int = 0):
        self.target = target
        self.status = status
        message = f"Fetch failed for {target}"
        if status:
            message = f"Fetch failed {status} for {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class VersionMismatchError(ResolverError):
    """A fetched manifest reports a different version than was requested."""

    def __init__(self, package: str, expected: str, fetched: str):
        self.package = package
        self.expected = expected
        self.fetched = fetched
        super().__init__(
            f"Version mismatch: fetched {fetched} but expected {expected} for {package}"
        )
