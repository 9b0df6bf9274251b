"""
Fixed pretrained word vectors, keyed by vocabulary word id.
"""

from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import torch

from stack_lstm_parser.data.vocabulary import Vocabulary
from stack_lstm_parser.utils.logs import data_logger


class PretrainedEmbeddings:
    """
    Word id -> vector table. The vectors are never trained.

    Words absent from the table have no pretrained contribution; ``lookup``
    returns None for them instead of raising.
    """

    def __init__(self, index: Optional[Dict[int, int]] = None, weight: Optional[torch.Tensor] = None):
        self.index: Dict[int, int] = dict(index or {})
        if weight is None:
            weight = torch.zeros(0, 0)
        self.weight = weight.detach().float()
        self.weight.requires_grad_(False)

    @property
    def dim(self) -> int:
        return self.weight.size(1) if self.index else 0

    def lookup(self, word_id: int) -> Optional[torch.Tensor]:
        row = self.index.get(word_id)
        if row is None:
            return None
        return self.weight[row]

    def __contains__(self, word_id: int) -> bool:
        return word_id in self.index

    def __len__(self):
        return len(self.index)

    def state_dict(self) -> dict:
        return {'index': dict(self.index), 'weight': self.weight}

    @classmethod
    def from_state_dict(cls, state: dict) -> 'PretrainedEmbeddings':
        return cls(state['index'], state['weight'])


def load_pretrained(path: Optional[Path], vocab: Vocabulary) -> PretrainedEmbeddings:
    """
    Read a text table of ``word v1 ... vd`` rows and register every word in
    the (still open) vocabulary. A word2vec ``count dim`` header is skipped.
    """
    if path is None:
        return PretrainedEmbeddings()

    index: Dict[int, int] = {}
    vectors: List[np.ndarray] = []
    dim = None
    skipped = 0

    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f):
            parts = line.split()
            if len(parts) < 2:
                continue
            if line_no == 0 and len(parts) == 2 and parts[0].isdigit() and parts[1].isdigit():
                continue

            try:
                vector = np.asarray(parts[1:], dtype=np.float32)
            except ValueError:
                skipped += 1
                continue
            if dim is None:
                dim = vector.shape[0]
            elif vector.shape[0] != dim:
                skipped += 1
                continue

            word_id = vocab.add_word(parts[0])
            if word_id in index:
                vectors[index[word_id]] = vector
            else:
                index[word_id] = len(vectors)
                vectors.append(vector)

    if skipped:
        data_logger.warning(f"Skipped {skipped} malformed rows in {path}")
    data_logger.info(f"Loaded {len(vectors)} pretrained vectors of dimension {dim or 0} from {path}")

    if not vectors:
        return PretrainedEmbeddings()
    return PretrainedEmbeddings(index, torch.from_numpy(np.stack(vectors)))
