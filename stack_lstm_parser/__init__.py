from .models.parser import StackLSTMParser, ParseResult
from .models.options import ParserOptions, UnkStrategy
from .data.vocabulary import Vocabulary

__version__ = "0.1.0"

__all__ = ['StackLSTMParser', 'ParseResult', 'ParserOptions', 'UnkStrategy', 'Vocabulary']
