"""
Evaluator for the Stack-LSTM parser
"""
from typing import Dict, List, Sequence

from tqdm import tqdm

from stack_lstm_parser.data.dependency import Instance
from stack_lstm_parser.evaluation.metrics import (
    compute_correct,
    compute_las,
    compute_metrics_by_relation,
    compute_uas,
)
from stack_lstm_parser.models.parse_tree import ParseTree
from stack_lstm_parser.utils.logs import evaluation_logger


class Evaluator:
    """
    Decodes held-out sentences and scores them against their gold trees.

    UAS/LAS skip the ROOT position; ``exact_correct`` counts every position,
    ROOT included, and is the score used for model selection.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.total_uas_correct = 0
        self.total_las_correct = 0
        self.total_tokens = 0
        self.total_exact_correct = 0
        self.total_positions = 0

        self.all_pred_heads: List[List[int]] = []
        self.all_pred_rels: List[List[str]] = []
        self.all_gold_heads: List[List[int]] = []
        self.all_gold_rels: List[List[str]] = []

    def evaluate_parser(self, parser, instances: Sequence[Instance],
                        return_predictions: bool = False, show_progress: bool = True) -> Dict:
        self.reset()
        was_training = parser.training
        parser.eval()

        trees = []
        for instance in tqdm(instances, desc='Evaluating', leave=False, disable=not show_progress):
            hyp = parser.predict(instance)
            ref = ParseTree.from_heads(instance.words, instance.heads, instance.labels)
            trees.append(hyp)

            self.total_exact_correct += compute_correct(ref, hyp)
            self.total_positions += len(ref)

            pred_h, pred_r = hyp.get_parents(), hyp.get_arc_labels()
            uas_correct, uas_total = compute_uas(pred_h, instance.heads)
            las_correct, _ = compute_las(pred_h, pred_r, instance.heads, instance.labels)
            self.total_uas_correct += uas_correct
            self.total_las_correct += las_correct
            self.total_tokens += uas_total

            self.all_pred_heads.append(list(pred_h))
            self.all_pred_rels.append(list(pred_r))
            self.all_gold_heads.append(instance.heads)
            self.all_gold_rels.append(instance.labels)

        if was_training:
            parser.train()

        results = self._compute_results()
        evaluation_logger.info(
            f"Evaluated {len(instances)} sentences | UAS: {results['uas']:.2f}% | "
            f"LAS: {results['las']:.2f}% | Exact heads: {results['exact_correct']}/{results['exact_total']}"
        )

        if return_predictions:
            results['predictions'] = trees
            results['by_relation'] = self.by_relation()
        return results

    def by_relation(self) -> Dict[str, Dict]:
        """Per-relation scores over everything seen since the last reset"""
        totals: Dict[str, Dict] = {}
        for pred_h, pred_r, gold_h, gold_r in zip(
                self.all_pred_heads, self.all_pred_rels, self.all_gold_heads, self.all_gold_rels):
            for rel, data in compute_metrics_by_relation(pred_h, pred_r, gold_h, gold_r).items():
                entry = totals.setdefault(rel, {'correct': 0, 'total': 0})
                entry['correct'] += data['correct']
                entry['total'] += data['total']
        for data in totals.values():
            data['precision'] = data['correct'] / data['total'] * 100 if data['total'] > 0 else 0.0
        return totals

    def _compute_results(self) -> Dict:
        uas = self.total_uas_correct / self.total_tokens * 100 if self.total_tokens > 0 else 0.0
        las = self.total_las_correct / self.total_tokens * 100 if self.total_tokens > 0 else 0.0

        return {
            'uas': uas,
            'las': las,
            'total_tokens': self.total_tokens,
            'uas_correct': self.total_uas_correct,
            'las_correct': self.total_las_correct,
            'exact_correct': self.total_exact_correct,
            'exact_total': self.total_positions,
            'accuracy': self.total_exact_correct / self.total_positions if self.total_positions > 0 else 0.0,
        }
