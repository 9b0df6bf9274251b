import pytest

from stack_lstm_parser.evaluation import (
    Evaluator,
    compute_correct,
    compute_las,
    compute_metrics_by_relation,
    compute_uas,
)
from stack_lstm_parser.models.parse_tree import ParseTree
from stack_lstm_parser.utils.exceptions import LengthMismatchError


def test_compute_correct_self_match():
    tree = ParseTree.from_heads([10, 11, 12, 1], [1, 3, 1, -1], ['nsubj', 'root', 'obj', 'ERROR'])
    assert compute_correct(tree, tree) == len(tree)


def test_compute_correct_ignores_labels():
    ref = ParseTree.from_heads([10, 11, 12, 1], [1, 3, 1, -1], ['nsubj', 'root', 'obj', 'ERROR'])
    hyp = ParseTree.from_heads([10, 11, 12, 1], [1, 3, 3, -1], ['dep', 'root', 'obj', 'ERROR'])
    assert compute_correct(ref, hyp) == 3


def test_compute_correct_length_mismatch():
    with pytest.raises(LengthMismatchError):
        compute_correct(ParseTree([1, 2]), ParseTree([1, 2, 3]))


def test_attachment_scores_skip_root():
    gold_heads, gold_rels = [1, 3, 1, -1], ['nsubj', 'root', 'obj', 'ERROR']
    pred_heads, pred_rels = [1, 3, 3, -1], ['nsubj', 'root', 'obj', 'ERROR']

    assert compute_uas(pred_heads, gold_heads) == (2, 3)
    assert compute_uas(pred_heads, gold_heads, skip_root=False) == (3, 4)
    assert compute_las(pred_heads, ['dep', 'root', 'obj', 'ERROR'], gold_heads, gold_rels) == (1, 3)

    by_relation = compute_metrics_by_relation(pred_heads, pred_rels, gold_heads, gold_rels)
    assert by_relation['obj'] == {'correct': 0, 'total': 1, 'precision': 0.0}
    assert by_relation['nsubj']['precision'] == 100.0
    assert 'ERROR' not in by_relation


def test_evaluate_parser(parser, instances):
    parser.train()
    results = Evaluator().evaluate_parser(parser, instances, return_predictions=True, show_progress=False)

    assert results['total_tokens'] == sum(len(i) - 1 for i in instances)
    assert results['exact_total'] == sum(len(i) for i in instances)
    # ROOT never has a parent in either tree
    assert results['exact_correct'] >= len(instances)
    assert 0.0 <= results['uas'] <= 100.0
    assert results['las'] <= results['uas']
    assert len(results['predictions']) == len(instances)
    assert parser.training
