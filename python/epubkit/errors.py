"""EPUB error definitions.

All errors raised by the parse pipeline and the retrieval helpers are defined
here, each code mapped to the broad kind of failure it represents.
"""

from enum import Enum


class EpubErrorCode(str, Enum):
    """Standardized error codes.

    Format: E_CATEGORY_NAME
    """

    # I/O errors
    E_ARCHIVE_UNREADABLE = "E_ARCHIVE_UNREADABLE"

    # Format errors
    E_EMPTY_ARCHIVE = "E_EMPTY_ARCHIVE"
    E_ARCHIVE_UNSAFE = "E_ARCHIVE_UNSAFE"
    E_MISSING_MIMETYPE = "E_MISSING_MIMETYPE"
    E_UNSUPPORTED_MIMETYPE = "E_UNSUPPORTED_MIMETYPE"
    E_MISSING_CONTAINER = "E_MISSING_CONTAINER"
    E_MALFORMED_CONTAINER = "E_MALFORMED_CONTAINER"
    E_NO_ROOTFILE = "E_NO_ROOTFILE"
    E_ROOTFILE_NOT_FOUND = "E_ROOTFILE_NOT_FOUND"
    E_MALFORMED_PACKAGE = "E_MALFORMED_PACKAGE"
    E_MALFORMED_NAV = "E_MALFORMED_NAV"

    # Lookup errors
    E_UNKNOWN_ID = "E_UNKNOWN_ID"
    E_FILE_NOT_FOUND = "E_FILE_NOT_FOUND"

    # Type errors
    E_UNSUPPORTED_MEDIA_TYPE = "E_UNSUPPORTED_MEDIA_TYPE"

    # Argument errors
    E_INVALID_ARGUMENT = "E_INVALID_ARGUMENT"


class ErrorKind(str, Enum):
    """Broad failure categories."""

    IO = "io"
    FORMAT = "format"
    LOOKUP = "lookup"
    TYPE = "type"
    ARGUMENT = "argument"


# Error code to kind mapping
ERROR_CODE_TO_KIND: dict[EpubErrorCode, ErrorKind] = {
    EpubErrorCode.E_ARCHIVE_UNREADABLE: ErrorKind.IO,
    EpubErrorCode.E_EMPTY_ARCHIVE: ErrorKind.FORMAT,
    EpubErrorCode.E_ARCHIVE_UNSAFE: ErrorKind.FORMAT,
    EpubErrorCode.E_MISSING_MIMETYPE: ErrorKind.FORMAT,
    EpubErrorCode.E_UNSUPPORTED_MIMETYPE: ErrorKind.FORMAT,
    EpubErrorCode.E_MISSING_CONTAINER: ErrorKind.FORMAT,
    EpubErrorCode.E_MALFORMED_CONTAINER: ErrorKind.FORMAT,
    EpubErrorCode.E_NO_ROOTFILE: ErrorKind.FORMAT,
    EpubErrorCode.E_ROOTFILE_NOT_FOUND: ErrorKind.FORMAT,
    EpubErrorCode.E_MALFORMED_PACKAGE: ErrorKind.FORMAT,
    EpubErrorCode.E_MALFORMED_NAV: ErrorKind.FORMAT,
    EpubErrorCode.E_UNKNOWN_ID: ErrorKind.LOOKUP,
    EpubErrorCode.E_FILE_NOT_FOUND: ErrorKind.LOOKUP,
    EpubErrorCode.E_UNSUPPORTED_MEDIA_TYPE: ErrorKind.TYPE,
    EpubErrorCode.E_INVALID_ARGUMENT: ErrorKind.ARGUMENT,
}


class EpubError(Exception):
    """Base exception for EPUB errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        kind: Failure category (derived from code)
    """

    def __init__(self, code: EpubErrorCode, message: str):
        self.code = code
        self.message = message
        self.kind = ERROR_CODE_TO_KIND.get(code, ErrorKind.FORMAT)
        super().__init__(message)


class ArchiveIoError(EpubError):
    """Archive unreadable, or an entry could not be read."""

    def __init__(
        self,
        code: EpubErrorCode = EpubErrorCode.E_ARCHIVE_UNREADABLE,
        message: str = "Reading archive failed",
    ):
        super().__init__(code, message)


class FormatError(EpubError):
    """Structural problem with the container, package or navigation document."""

    def __init__(self, code: EpubErrorCode, message: str):
        super().__init__(code, message)


class EpubLookupError(EpubError, LookupError):
    """Unknown manifest id or archive entry."""

    def __init__(
        self, code: EpubErrorCode = EpubErrorCode.E_UNKNOWN_ID, message: str = "File not found"
    ):
        super().__init__(code, message)


class MediaTypeError(EpubError, TypeError):
    """Manifest item has the wrong media type for the request."""

    def __init__(
        self,
        code: EpubErrorCode = EpubErrorCode.E_UNSUPPORTED_MEDIA_TYPE,
        message: str = "Unsupported media type",
    ):
        super().__init__(code, message)


class ArgumentError(EpubError, TypeError):
    """Invalid call arguments."""

    def __init__(
        self, code: EpubErrorCode = EpubErrorCode.E_INVALID_ARGUMENT, message: str = "Bad arguments"
    ):
        super().__init__(code, message)
