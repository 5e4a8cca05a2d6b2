"""
Error classification

Maps any exception to an ErrorKind. Errors raised by this package carry
their kind; builtin exceptions are mapped by type.
"""

import errno

from statusbot.core.exceptions.base import ErrorKind, StatusBotError

_FILESYSTEM_ERRNOS = {errno.ENOENT, errno.EACCES, errno.EPERM, errno.ENOSPC, errno.EROFS}


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Return the ErrorKind for an exception.

    Order matters: ConnectionError and FileNotFoundError are both OSError
    subclasses, so the specific checks run before the errno fallback.
    """
    if isinstance(exc, StatusBotError):
        return exc.kind
    if isinstance(exc, MemoryError):
        return ErrorKind.MEMORY
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return ErrorKind.CONNECTION
    if isinstance(exc, (FileNotFoundError, PermissionError, IsADirectoryError, NotADirectoryError)):
        return ErrorKind.FILESYSTEM
    if isinstance(exc, OSError) and exc.errno in _FILESYSTEM_ERRNOS:
        return ErrorKind.FILESYSTEM
    return ErrorKind.UNKNOWN
