"""
Evaluation metrics for dependency parsing

Heads are internal positions: the ROOT pseudo-token is the last position of
every sentence, so ``skip_root`` drops the last element.
"""
from typing import List, Tuple, Dict
from collections import defaultdict

from stack_lstm_parser.models.parse_tree import ParseTree
from stack_lstm_parser.utils.exceptions import LengthMismatchError


def compute_correct(ref: ParseTree, hyp: ParseTree) -> int:
    """
    Number of positions whose parent is the same in both trees. Labels are
    not compared and every position counts, ROOT included.
    """
    if len(ref) != len(hyp):
        raise LengthMismatchError(f"Reference has {len(ref)} tokens, hypothesis has {len(hyp)}")
    return sum(1 for r, h in zip(ref.get_parents(), hyp.get_parents()) if r == h)


def _positions(gold_heads: List[int], skip_root: bool) -> range:
    return range(len(gold_heads) - 1 if skip_root else len(gold_heads))


def compute_uas(pred_heads: List[int], gold_heads: List[int],
                skip_root: bool = True) -> Tuple[int, int]:
    """
    Unlabeled Attachment Score

    Returns:
        Tuple (correct, total)
    """
    correct = 0
    total = 0

    for i in _positions(gold_heads, skip_root):
        if pred_heads[i] == gold_heads[i]:
            correct += 1
        total += 1

    return correct, total


def compute_las(pred_heads: List[int], pred_rels: List[str],
                gold_heads: List[int], gold_rels: List[str],
                skip_root: bool = True) -> Tuple[int, int]:
    """
    Labeled Attachment Score: both head and relation must match

    Returns:
        Tuple (correct, total)
    """
    correct = 0
    total = 0

    for i in _positions(gold_heads, skip_root):
        if pred_heads[i] == gold_heads[i] and pred_rels[i] == gold_rels[i]:
            correct += 1
        total += 1

    return correct, total


def compute_metrics_by_relation(pred_heads: List[int], pred_rels: List[str],
                                gold_heads: List[int], gold_rels: List[str]) -> Dict[str, Dict]:
    """
    Returns:
        Dict: {relation: {'correct': int, 'total': int, 'precision': float}}
    """
    stats = defaultdict(lambda: {'correct': 0, 'total': 0})

    for i in _positions(gold_heads, skip_root=True):
        rel_name = gold_rels[i]
        stats[rel_name]['total'] += 1

        if pred_heads[i] == gold_heads[i] and pred_rels[i] == gold_rels[i]:
            stats[rel_name]['correct'] += 1

    for rel, data in stats.items():
        if data['total'] > 0:
            data['precision'] = data['correct'] / data['total'] * 100
        else:
            data['precision'] = 0.0

    return dict(stats)
