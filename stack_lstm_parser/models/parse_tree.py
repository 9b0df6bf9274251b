"""
Parse trees and their recovery from action sequences
"""

from typing import List, Optional, Sequence

from stack_lstm_parser.models.transition_system import ActionKind, ActionSet, is_action_forbidden
from stack_lstm_parser.utils.constants import DEFAULT_ARC_LABEL
from stack_lstm_parser.utils.exceptions import IllegalActionError


class ParseTree:
    """
    Barebones representation of a parse tree.

    Attributes:
        sentence: token ids of the sentence (ROOT last)
        parents: parent index for each token (-1 = no parent)
        arc_labels: relation label for each token, None for unlabeled trees
    """

    def __init__(self, sentence: Sequence[int], labeled: bool = True):
        self.sentence = list(sentence)
        self.parents: List[int] = [-1] * len(self.sentence)
        self.arc_labels: Optional[List[str]] = [DEFAULT_ARC_LABEL] * len(self.sentence) if labeled else None

    @classmethod
    def from_heads(
        cls,
        sentence: Sequence[int],
        heads: Sequence[int],
        labels: Optional[Sequence[str]] = None,
    ) -> 'ParseTree':
        tree = cls(sentence, labeled=labels is not None)
        for index, head in enumerate(heads):
            if head >= 0:
                tree.set_parent(index, head, labels[index] if labels is not None else "")
        return tree

    def set_parent(self, index: int, parent_index: int, arc_label: str = ""):
        self.parents[index] = parent_index
        if self.arc_labels is not None:
            self.arc_labels[index] = arc_label

    @property
    def labeled(self) -> bool:
        return self.arc_labels is not None

    def get_parents(self) -> List[int]:
        return self.parents

    def get_arc_labels(self) -> List[str]:
        if self.arc_labels is None:
            raise ValueError("Tree was built without arc labels")
        return self.arc_labels

    def __len__(self):
        return len(self.sentence)

    def __eq__(self, other):
        if not isinstance(other, ParseTree):
            return NotImplemented
        return (self.sentence == other.sentence and self.parents == other.parents
                and self.arc_labels == other.arc_labels)

    def __repr__(self):
        return f"ParseTree(parents={self.parents}, arc_labels={self.arc_labels})"


def recover_parse_tree(
    sentence: Sequence[int],
    actions: Sequence[int],
    action_set: ActionSet,
    labeled: bool = False,
) -> ParseTree:
    """
    Replays an action sequence to rebuild the tree it describes.

    No model is involved: only stack/buffer bookkeeping, with the same
    legality rules and pop order as the parser. ROOT is the last token.
    """
    tree = ParseTree(sentence, labeled)
    root_index = len(sentence) - 1

    buffer = list(range(len(sentence) - 1, -1, -1))  # front of the buffer is the end of the list
    stack: List[int] = []

    for step, action_id in enumerate(actions):
        action = action_set[action_id]
        if is_action_forbidden(action, len(buffer), len(stack), stack, root_index):
            raise IllegalActionError(
                f"Action {action.name} at step {step} is illegal "
                f"(buffer={len(buffer)}, stack={len(stack)})"
            )

        if action.kind == ActionKind.SHIFT:
            stack.append(buffer.pop())
        else:
            top = stack.pop()
            below = stack.pop()
            if action.kind == ActionKind.RIGHT_ARC:
                head, dep = below, top
            else:
                head, dep = top, below
            stack.append(head)
            tree.set_parent(dep, head, action.label)

    if buffer or len(stack) != 1:
        raise IllegalActionError(
            f"Action sequence ends in a non-terminal state (buffer={len(buffer)}, stack={len(stack)})"
        )
    return tree
