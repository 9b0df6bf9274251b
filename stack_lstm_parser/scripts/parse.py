from pathlib import Path
from typing import Optional

from stack_lstm_parser.data import CoNLLUDataset, encode_instances, write_conllu
from stack_lstm_parser.evaluation import Evaluator
from stack_lstm_parser.models.parser import StackLSTMParser
from stack_lstm_parser.utils.constants import get_device
from stack_lstm_parser.utils.logs import evaluation_logger


def log_relation_scores(by_relation: dict, top_k: int = 10):
    """Log the attachment accuracy of the most frequent relations"""
    evaluation_logger.info(f"Top {top_k} relations by frequency:")
    ranked = sorted(by_relation.items(), key=lambda x: x[1]['total'], reverse=True)[:top_k]
    for rel, data in ranked:
        evaluation_logger.info(
            f"  {rel}: {data['correct']}/{data['total']} ({data['precision']:.2f}%)"
        )


def run_parsing(
    model_path: Path,
    input_file: Path,
    output_file: Optional[Path] = None,
) -> dict:
    """Decode a CoNLL-U file; scores are reported when the input carries gold heads"""
    model = StackLSTMParser.load(model_path)
    model.to(get_device())

    sentences = CoNLLUDataset(input_file).get_sentences()
    instances = encode_instances(sentences, model.vocab)

    evaluator = Evaluator()
    results = evaluator.evaluate_parser(model, instances, return_predictions=True)
    trees = results.pop('predictions')

    if output_file is not None:
        write_conllu(output_file, instances, trees)

    has_gold = any(word_info['deprel'] != '_' for sentence in sentences for word_info in sentence)
    if has_gold:
        evaluation_logger.info(f"Test Results on {input_file}:")
        evaluation_logger.info(f"  UAS (Unlabeled Attachment Score): {results['uas']:.2f}%")
        evaluation_logger.info(f"  LAS (Labeled Attachment Score): {results['las']:.2f}%")
        evaluation_logger.info(f"  Heads correct: {results['exact_correct']}/{results['exact_total']}")
        log_relation_scores(results['by_relation'])
    results['has_gold'] = has_gold
    return results
