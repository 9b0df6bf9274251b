from dataclasses import dataclass, field
from typing import List


@dataclass
class Instance:
    """
    One encoded sentence. Every list has the ROOT pseudo-token as its last
    element; heads use internal positions (ROOT's head is -1).
    """
    raw: List[int]          # Word ids for the pretrained lookup
    words: List[int]        # Normalized word ids (UNK for words unseen in training)
    pos: List[int]
    forms: List[str]
    pos_tags: List[str]
    heads: List[int]
    labels: List[str]
    actions: List[int] = field(default_factory=list)  # Oracle action ids, empty for evaluation data
    tokens: List[dict] = field(default_factory=list)  # Source CoNLL-U fields, used when writing

    def __len__(self):
        return len(self.words)

