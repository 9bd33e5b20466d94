"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    MappingNotFoundError:
        Raised when a mapping is not found in the data store.

    MappingAlreadyExistsError:
        Raised when inserting a mapping whose code is already taken.

    DataStoreError:
        Raised when the data store fails (connection issues, timeouts, throttling, etc.).

Example:
    >>> from snaplink.dao.exceptions import MappingAlreadyExistsError
    >>> raise MappingAlreadyExistsError("Mapping with code 'abc123' already exists.")
    Traceback (most recent call last):
        ...
    snaplink.dao.exceptions.MappingAlreadyExistsError: Mapping with code 'abc123' already exists.
"""

from snaplink.exceptions import SnapLinkError


class DAOError(SnapLinkError):
    """Generic base class for DAO-related exceptions."""

    error_code = 'dao:dao_error'


class MappingNotFoundError(DAOError):
    """Raised when a mapping is not found in the data store."""

    error_code = 'dao:mapping_not_found_error'


class MappingAlreadyExistsError(DAOError):
    """Raised when inserting a mapping whose code already exists in the data store."""

    error_code = 'dao:mapping_already_exists_error'


class DataStoreError(DAOError):
    """Raised when the data store encounters an error.

    Examples include connection issues, timeouts, and throttling.
    """

    error_code = 'dao:data_store_error'
