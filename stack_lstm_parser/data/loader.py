from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from conllu import parse_incr
from conllu.exceptions import ParseException

from stack_lstm_parser.data.dependency import Instance
from stack_lstm_parser.data.vocabulary import Vocabulary
from stack_lstm_parser.models.transition_system import Oracle
from stack_lstm_parser.utils.constants import DEFAULT_ARC_LABEL, ROOT_SYMBOL
from stack_lstm_parser.utils.exceptions import OracleError
from stack_lstm_parser.utils.logs import data_logger


class CoNLLUDataset:
    def __init__(self, file_path: Path):
        self.file_path = file_path
        self.sentences = []
        self.load_data()

    def load_data(self):
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                for sentence_tokenlist in parse_incr(f):
                    sentence = []

                    for token in sentence_tokenlist:
                        # Multi-word tokens and empty nodes
                        if isinstance(token['id'], tuple):
                            continue

                        if isinstance(token['id'], float):
                            continue

                        word_info = {
                            'id': int(token['id']),
                            'form': token['form'],
                            'lemma': token.get('lemma') or '_',
                            'upos': token.get('upos') or '_',
                            'xpos': token.get('xpos') or '_',
                            'feats': token.get('feats'),
                            'head': int(token['head']) if token.get('head') else 0,
                            'deprel': token.get('deprel') or '_'
                        }

                        sentence.append(word_info)

                    if sentence:
                        self.sentences.append(sentence)
            data_logger.info(f"Loaded {len(self.sentences)} sentences from {self.file_path}")
        except ParseException as e:
            data_logger.error(f"Error parsing file {self.file_path}: {e}")
            raise e
        except Exception as e:
            data_logger.error(f"Error reading file: {e}")
            raise e

    def get_sentences(self):
        return self.sentences


def to_internal_heads(sentence: List[dict]) -> Tuple[List[int], List[str]]:
    """
    CoNLL-U heads (1-based, 0 = ROOT) to internal positions with ROOT
    appended as the last token.
    """
    root = len(sentence)
    heads = [root if word_info['head'] == 0 else word_info['head'] - 1 for word_info in sentence]
    labels = [word_info['deprel'] for word_info in sentence]
    return heads + [-1], labels + [DEFAULT_ARC_LABEL]


def build_training_data(
    sentences: List[List[dict]],
    vocab: Vocabulary,
    lowercase: bool = False,
) -> Tuple[List[List[dict]], List[List[str]]]:
    """
    Derive oracle action sequences and register the training vocabulary.

    Sentences the arc-standard oracle cannot derive (non-projective ones) are
    dropped with a warning.

    Returns:
        (kept sentences, oracle action names per kept sentence)
    """
    oracle = Oracle()
    kept, action_sequences = [], []
    for i, sentence in enumerate(sentences):
        heads, labels = to_internal_heads(sentence)
        try:
            actions = oracle.get_oracle_sequence(heads, labels)
        except OracleError as e:
            data_logger.warning(f"Skipping training sentence {i}: {e}")
            continue
        kept.append(sentence)
        action_sequences.append(actions)

    if len(kept) < len(sentences):
        data_logger.warning(f"Kept {len(kept)} of {len(sentences)} training sentences")

    vocab.build_vocab(kept, action_sequences, lowercase=lowercase)
    return kept, action_sequences


def encode_instances(
    sentences: List[List[dict]],
    vocab: Vocabulary,
    action_sequences: Optional[Sequence[List[str]]] = None,
) -> List[Instance]:
    """Word forms are case-folded the way the vocabulary was built"""
    instances = []
    for i, sentence in enumerate(sentences):
        forms = [word_info['form'] for word_info in sentence] + [ROOT_SYMBOL]
        pos_tags = [word_info['upos'] for word_info in sentence] + [ROOT_SYMBOL]

        raw = [vocab.word_to_int(vocab.fold(form)) for form in forms[:-1]]
        raw.append(vocab.root_id)
        words = [vocab.normalize(idx) for idx in raw]
        pos = [vocab.pos_to_int(tag) for tag in pos_tags[:-1]] + [vocab.root_pos_id]

        heads, labels = to_internal_heads(sentence)
        actions = [vocab.action_to_int(a) for a in action_sequences[i]] if action_sequences is not None else []

        instances.append(Instance(
            raw=raw,
            words=words,
            pos=pos,
            forms=forms,
            pos_tags=pos_tags,
            heads=heads,
            labels=labels,
            actions=actions,
            tokens=sentence,
        ))
    return instances
