from .evaluator import Evaluator
from .metrics import compute_correct, compute_uas, compute_las, compute_metrics_by_relation

__all__ = ['Evaluator', 'compute_correct', 'compute_uas', 'compute_las', 'compute_metrics_by_relation']
