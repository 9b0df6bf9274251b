"""
Arc-Standard Transition System for the Stack-LSTM parser

Transitions:
- SHIFT: Move the front of the buffer onto the stack
- LEFT-ARC(label): stack top becomes head of the element below it, which is popped
- RIGHT-ARC(label): the element below the top becomes head of the top, which is popped

The ROOT pseudo-token is the last token of every sentence, so it is the last
token shifted and always ends up as the single element left on the stack.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from stack_lstm_parser.utils.constants import SHIFT_ACTION
from stack_lstm_parser.utils.exceptions import OracleError


class ActionKind(Enum):
    SHIFT = 0
    LEFT_ARC = 1
    RIGHT_ARC = 2


_ARC_PATTERN = re.compile(r'^(LEFT|RIGHT)-ARC\((.*)\)$')


@dataclass(frozen=True)
class Action:
    """A parser action"""
    kind: ActionKind
    label: Optional[str] = None  # Relation label for arc actions
    label_id: Optional[int] = None

    @classmethod
    def parse(cls, name: str, label_id: Optional[int] = None) -> 'Action':
        if name == SHIFT_ACTION:
            return cls(ActionKind.SHIFT)
        match = _ARC_PATTERN.match(name)
        if match is None:
            raise ValueError(f"Unknown action name: {name!r}")
        kind = ActionKind.LEFT_ARC if match.group(1) == 'LEFT' else ActionKind.RIGHT_ARC
        return cls(kind, match.group(2), label_id)

    @property
    def name(self) -> str:
        if self.kind == ActionKind.SHIFT:
            return SHIFT_ACTION
        elif self.kind == ActionKind.LEFT_ARC:
            return f"LEFT-ARC({self.label})"
        else:
            return f"RIGHT-ARC({self.label})"

    @property
    def is_shift(self) -> bool:
        return self.kind == ActionKind.SHIFT

    @property
    def is_arc(self) -> bool:
        return self.kind != ActionKind.SHIFT

    def __repr__(self):
        return self.name


def left_arc_name(label: str) -> str:
    return f"LEFT-ARC({label})"


def right_arc_name(label: str) -> str:
    return f"RIGHT-ARC({label})"


class ActionSet:
    """
    Closed enumeration of the actions known to a finalized vocabulary.

    The position of an action in the set is its action id; relation labels
    are numbered in order of first appearance.
    """

    def __init__(self, action_names: Sequence[str]):
        self.relations: List[str] = []
        rel2idx: Dict[str, int] = {}
        actions = []
        for name in action_names:
            action = Action.parse(name)
            if action.is_arc:
                if action.label not in rel2idx:
                    rel2idx[action.label] = len(self.relations)
                    self.relations.append(action.label)
                action = Action(action.kind, action.label, rel2idx[action.label])
            actions.append(action)
        self.actions: List[Action] = actions
        self.rel2idx = rel2idx

    def __len__(self):
        return len(self.actions)

    def __getitem__(self, action_id: int) -> Action:
        return self.actions[action_id]

    def __iter__(self):
        return iter(self.actions)

    @property
    def num_relations(self) -> int:
        return len(self.relations)

    def names(self) -> List[str]:
        return [action.name for action in self.actions]


def is_action_forbidden(
    action: Action,
    buffer_size: int,
    stack_size: int,
    stack_indices: Sequence[int],
    root_index: int,
) -> bool:
    """
    Legality predicate. Sizes count real elements only (guards excluded);
    stack_indices lists token positions bottom to top and root_index is the
    position of the ROOT token.
    """
    if action.is_shift:
        if buffer_size < 1:
            return True
        # ROOT is the only thing left in the buffer: reduce the stack first
        if buffer_size == 1 and stack_size > 1:
            return True
        return False

    if stack_size < 2:
        return True

    # The final arc must attach to ROOT, which sits on top
    if buffer_size == 0 and stack_size == 2 and action.kind == ActionKind.RIGHT_ARC:
        return True

    # ROOT may only be a head
    if action.kind == ActionKind.LEFT_ARC and stack_indices[-2] == root_index:
        return True
    if action.kind == ActionKind.RIGHT_ARC and stack_indices[-1] == root_index:
        return True

    return False


def legal_actions(
    action_set: Iterable[Action],
    buffer_size: int,
    stack_indices: Sequence[int],
    root_index: int,
) -> List[int]:
    """Ids of every legal action, in action-id order"""
    stack_size = len(stack_indices)
    return [
        action_id for action_id, action in enumerate(action_set)
        if not is_action_forbidden(action, buffer_size, stack_size, stack_indices, root_index)
    ]


class Oracle:
    """
    Static Oracle for the Arc-Standard system.

    Given a gold parse (ROOT last, ``heads[root] == -1``), generates the
    sequence of action names that rebuilds it.
    """

    def get_oracle_sequence(self, heads: Sequence[int], labels: Sequence[str]) -> List[str]:
        length = len(heads)
        if length == 0:
            raise OracleError("Sentence has no ROOT token")
        root = length - 1

        self._check_tree(heads, root)

        # Number of dependents each token still has to collect
        pending = [0] * length
        for dep, head in enumerate(heads):
            if dep != root:
                pending[head] += 1

        stack: List[int] = []
        buffer = list(range(length))
        actions: List[str] = []

        while buffer or len(stack) > 1:
            action = None
            if len(stack) >= 2:
                s0 = stack[-1]  # Stack top
                s1 = stack[-2]  # Second on stack

                # LEFT-ARC: s0 -> s1 (s0 is head of s1)
                if s1 != root and heads[s1] == s0 and pending[s1] == 0:
                    action = left_arc_name(labels[s1])
                    stack.pop(-2)
                    pending[s0] -= 1
                # RIGHT-ARC: s1 -> s0 (s1 is head of s0)
                elif s0 != root and heads[s0] == s1 and pending[s0] == 0:
                    action = right_arc_name(labels[s0])
                    stack.pop(-1)
                    pending[s1] -= 1

            if action is None:
                if not buffer or (len(buffer) == 1 and len(stack) > 1):
                    raise OracleError(
                        f"Tree is not derivable (non-projective or multiple roots): heads={list(heads)}"
                    )
                action = SHIFT_ACTION
                stack.append(buffer.pop(0))

            actions.append(action)

        return actions

    @staticmethod
    def _check_tree(heads: Sequence[int], root: int):
        if heads[root] != -1:
            raise OracleError(f"ROOT token must not have a head, got {heads[root]}")
        for dep, head in enumerate(heads):
            if dep == root:
                continue
            if not 0 <= head < len(heads) or head == dep:
                raise OracleError(f"Invalid head {head} for token {dep}")
