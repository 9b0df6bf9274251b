from collections import Counter
from typing import Dict, Iterable, List, Optional, Set

from stack_lstm_parser.models.transition_system import ActionSet
from stack_lstm_parser.utils.constants import ROOT_SYMBOL, UNK_SYMBOL
from stack_lstm_parser.utils.exceptions import VocabularyError
from stack_lstm_parser.utils.logs import data_logger


class Vocabulary:
    """The format example of a sentence:
        [{'id': 1, 'form': 'I', 'upos': 'PRON', 'head': 2, 'deprel': 'nsubj'}, ...]

    Words and POS tags share the same two special symbols: <UNK> (id 0) and
    ROOT (id 1). Action names have no special entries. Once finalized, no new
    id can be registered.
    """
    def __init__(self):
        self.word2idx: Dict[str, int] = {UNK_SYMBOL: 0, ROOT_SYMBOL: 1}
        self.idx2word: List[str] = [UNK_SYMBOL, ROOT_SYMBOL]
        self.pos2idx: Dict[str, int] = {UNK_SYMBOL: 0, ROOT_SYMBOL: 1}
        self.idx2pos: List[str] = [UNK_SYMBOL, ROOT_SYMBOL]
        self.action2idx: Dict[str, int] = {}
        self.idx2action: List[str] = []

        self.word_counter = Counter()
        # Set from the training corpus; every later lookup folds case the same way
        self.lowercase = False
        self.training_words: Set[int] = set()

        self._action_set: Optional[ActionSet] = None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _check_open(self, what: str):
        if self._action_set is not None:
            raise VocabularyError(f"Cannot add {what} to a finalized vocabulary")

    def add_word(self, word: str, training: bool = False) -> int:
        """Register a word; training occurrences are counted for the singleton set"""
        if word not in self.word2idx:
            self._check_open(f"word {word!r}")
            self.word2idx[word] = len(self.idx2word)
            self.idx2word.append(word)
        idx = self.word2idx[word]
        if training:
            self._check_open(f"training occurrence of {word!r}")
            self.word_counter[word] += 1
            self.training_words.add(idx)
        return idx

    def add_pos(self, pos: str) -> int:
        if pos not in self.pos2idx:
            self._check_open(f"POS tag {pos!r}")
            self.pos2idx[pos] = len(self.idx2pos)
            self.idx2pos.append(pos)
        return self.pos2idx[pos]

    def add_action(self, action: str) -> int:
        if action not in self.action2idx:
            self._check_open(f"action {action!r}")
            self.action2idx[action] = len(self.idx2action)
            self.idx2action.append(action)
        return self.action2idx[action]

    def build_vocab(
        self,
        sentences: List[List[dict]],
        action_sequences: Iterable[List[str]],
        lowercase: bool = False,
    ) -> None:
        self.lowercase = lowercase
        for sent in sentences:
            for word_info in sent:
                form = self.fold(word_info['form'])
                self.add_word(form, training=True)
                self.add_pos(word_info['upos'])
        # ROOT is part of every training sentence
        self.training_words.add(self.root_id)

        for actions in action_sequences:
            for action in actions:
                self.add_action(action)

        data_logger.info(
            f"Vocabulary built: {self.num_words} words ({len(self.singletons)} singletons), "
            f"{self.num_pos} POS tags, {self.num_actions} actions"
        )

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def finalize(self) -> ActionSet:
        """Freeze every mapping and build the closed action set. Calling it again is a no-op."""
        if self._action_set is None:
            if not self.idx2action:
                raise VocabularyError("Cannot finalize a vocabulary without actions")
            self._action_set = ActionSet(self.idx2action)
            data_logger.debug(
                f"Vocabulary finalized: {self.num_actions} actions, {self.num_relations} relations"
            )
        return self._action_set

    def is_finalized(self) -> bool:
        return self._action_set is not None

    @property
    def action_set(self) -> ActionSet:
        if self._action_set is None:
            raise VocabularyError("Vocabulary is not finalized")
        return self._action_set

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def fold(self, form: str) -> str:
        return form.lower() if self.lowercase else form

    def word_to_int(self, word: str) -> int:
        return self.word2idx.get(word, self.unk_id)

    def int_to_word(self, idx: int) -> str:
        return self._lookup(self.idx2word, idx, 'word')

    def pos_to_int(self, pos: str) -> int:
        return self.pos2idx.get(pos, self.unk_pos_id)

    def int_to_pos(self, idx: int) -> str:
        return self._lookup(self.idx2pos, idx, 'POS')

    def action_to_int(self, action: str) -> int:
        if action not in self.action2idx:
            raise VocabularyError(f"Unknown action {action!r}")
        return self.action2idx[action]

    def int_to_action(self, idx: int) -> str:
        return self._lookup(self.idx2action, idx, 'action')

    def rel_to_int(self, rel: str) -> int:
        if rel not in self.action_set.rel2idx:
            raise VocabularyError(f"Unknown relation {rel!r}")
        return self.action_set.rel2idx[rel]

    def int_to_rel(self, idx: int) -> str:
        return self._lookup(self.action_set.relations, idx, 'relation')

    @staticmethod
    def _lookup(table: List[str], idx: int, kind: str) -> str:
        if not 0 <= idx < len(table):
            raise VocabularyError(f"{kind} id {idx} out of range [0, {len(table)})")
        return table[idx]

    def normalize(self, idx: int) -> int:
        """Map a word id to the id its trainable embedding is looked up with"""
        return idx if idx in self.training_words else self.unk_id

    @property
    def singletons(self) -> Set[int]:
        return {self.word2idx[word] for word, count in self.word_counter.items() if count == 1}

    @property
    def unk_id(self) -> int:
        return self.word2idx[UNK_SYMBOL]

    @property
    def root_id(self) -> int:
        return self.word2idx[ROOT_SYMBOL]

    @property
    def unk_pos_id(self) -> int:
        return self.pos2idx[UNK_SYMBOL]

    @property
    def root_pos_id(self) -> int:
        return self.pos2idx[ROOT_SYMBOL]

    @property
    def num_words(self) -> int:
        return len(self.idx2word)

    @property
    def num_pos(self) -> int:
        return len(self.idx2pos)

    @property
    def num_actions(self) -> int:
        return len(self.idx2action)

    @property
    def num_relations(self) -> int:
        return self.action_set.num_relations

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def state_dict(self) -> dict:
        return {
            'words': list(self.idx2word),
            'pos': list(self.idx2pos),
            'actions': list(self.idx2action),
            'word_counter': dict(self.word_counter),
            'training_words': sorted(self.training_words),
            'lowercase': self.lowercase,
        }

    @classmethod
    def from_state_dict(cls, state: dict) -> 'Vocabulary':
        """Rebuild an open vocabulary; the caller finalizes it"""
        vocab = cls()
        for word in state['words']:
            vocab.add_word(word)
        for pos in state['pos']:
            vocab.add_pos(pos)
        for action in state['actions']:
            vocab.add_action(action)
        vocab.word_counter = Counter(state['word_counter'])
        vocab.training_words = set(state['training_words'])
        vocab.lowercase = state.get('lowercase', False)
        return vocab

    def __repr__(self):
        return (f"Vocabulary(words={self.num_words}, pos={self.num_pos}, "
                f"actions={self.num_actions}, finalized={self.is_finalized()})")
