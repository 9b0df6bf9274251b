from .exceptions import (
    ParserError,
    ConfigurationMismatchError,
    VocabularyError,
    IllegalActionError,
    OracleError,
    LengthMismatchError,
    StackUnderflowError,
)

__all__ = [
    'ParserError', 'ConfigurationMismatchError', 'VocabularyError', 'IllegalActionError',
    'OracleError', 'LengthMismatchError', 'StackUnderflowError',
]
