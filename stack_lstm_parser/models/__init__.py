# StackLSTMParser is imported from models.parser (it depends on the data package)
from .options import ParserOptions, UnkStrategy
from .transition_system import (
    ActionKind,
    Action,
    ActionSet,
    Oracle,
    is_action_forbidden,
    legal_actions,
)
from .parse_tree import ParseTree, recover_parse_tree
from .modules import StackLSTM, StackLSTMState, Composition, TransitionClassifier, TokenEmbedder

__all__ = [
    'ParserOptions', 'UnkStrategy',
    'ActionKind', 'Action', 'ActionSet', 'Oracle', 'is_action_forbidden', 'legal_actions',
    'ParseTree', 'recover_parse_tree',
    'StackLSTM', 'StackLSTMState', 'Composition', 'TransitionClassifier', 'TokenEmbedder',
]
