"""
Exceptions raised by the parser core.

Every fatal condition aborts the current operation; none of them is recovered
from inside the library.
"""


class ParserError(Exception):
    """Base class for all parser errors"""


class ConfigurationMismatchError(ParserError, ValueError):
    """Loaded ParserOptions differ from the expected ones"""


class VocabularyError(ParserError, KeyError):
    """Registration after finalize, or an id outside the valid range"""

    def __str__(self):
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ''


class IllegalActionError(ParserError, ValueError):
    """An action sequence violates the transition legality rules"""


class OracleError(ParserError, ValueError):
    """A gold tree cannot be derived by the transition system"""


class LengthMismatchError(ParserError, ValueError):
    """Reference and hypothesis trees cover different sentences"""


class StackUnderflowError(ParserError, IndexError):
    """Pop on an encoder that only holds its guard"""
