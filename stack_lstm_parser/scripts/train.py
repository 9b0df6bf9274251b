import json
import random
import shutil
import threading
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np
import torch

from stack_lstm_parser.data import (
    CoNLLUDataset,
    Vocabulary,
    build_training_data,
    encode_instances,
    load_pretrained,
)
from stack_lstm_parser.models.options import ParserOptions
from stack_lstm_parser.models.parser import StackLSTMParser
from stack_lstm_parser.trainers import StackLSTMTrainer, TrainConfig
from stack_lstm_parser.utils.constants import CONFIG_FILE
from stack_lstm_parser.utils.logs import train_logger


def set_seed(seed: int = 42):
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)


def save_results(
    config: TrainConfig,
    options: ParserOptions,
    results: dict,
    history: list,
    results_dir: Path
) -> Path:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = results_dir / f"run_stack_lstm_{timestamp}"
    run_dir.mkdir(parents=True, exist_ok=True)

    shutil.copy(CONFIG_FILE, run_dir / "config.yaml")

    config_dict = asdict(config)
    config_dict['model'] = options.to_dict()
    config_dict['timestamp'] = timestamp

    with open(run_dir / "config.json", 'w') as f:
        json.dump(config_dict, f, indent=2)

    with open(run_dir / "results.json", 'w') as f:
        json.dump(results, f, indent=2)

    with open(run_dir / "history.json", 'w') as f:
        json.dump(history, f, indent=2)

    train_logger.info(f"Saved all results to {run_dir}")

    return run_dir


def run_training(
    config: TrainConfig,
    options: ParserOptions,
    stop_event: Optional[threading.Event] = None,
) -> dict:
    device = config.device
    if device is None:
        device = 'cuda' if torch.cuda.is_available() else 'cpu'

    set_seed(config.seed)
    train_logger.info(f"Random seed: {config.seed}")
    train_logger.info(f"Device: {device}")
    train_logger.info(f"Model options: {options}")

    # =========================================================================
    # Load Data
    # =========================================================================
    train_logger.info("Loading data...")

    train_corpus = CoNLLUDataset(Path(config.train_file))
    vocab = Vocabulary()
    train_sentences, action_sequences = build_training_data(
        train_corpus.get_sentences(), vocab, lowercase=config.lowercase
    )

    # Pretrained words must be registered before the vocabulary is frozen
    pretrained = load_pretrained(Path(config.pretrained_file) if config.pretrained_file else None, vocab)

    model = StackLSTMParser(options, vocab, pretrained)

    train_instances = encode_instances(train_sentences, vocab, action_sequences)
    dev_instances = []
    if config.dev_file:
        dev_corpus = CoNLLUDataset(Path(config.dev_file))
        dev_instances = encode_instances(dev_corpus.get_sentences(), vocab)

    train_logger.info(f"Dataset statistics:")
    train_logger.info(f"  Train sentences: {len(train_instances)}")
    train_logger.info(f"  Dev sentences: {len(dev_instances)}")
    train_logger.info(f"  Vocabulary size: {vocab.num_words}")
    train_logger.info(f"  POS tags: {vocab.num_pos}")
    train_logger.info(f"  Actions: {vocab.num_actions}")
    train_logger.info(f"  Pretrained vectors: {len(pretrained)}")

    total_params = sum(p.numel() for p in model.parameters())
    train_logger.info(f"Total parameters: {total_params:,}")

    # =========================================================================
    # Train
    # =========================================================================
    trainer = StackLSTMTrainer(
        model=model,
        train_instances=train_instances,
        dev_instances=dev_instances,
        config=config,
        device=device,
        stop_event=stop_event,
    )
    history = trainer.train(config.num_epochs)

    results = {
        'model_path': trainer.model_path,
        'best_dev_uas': trainer.best_uas,
        'best_dev_las': trainer.best_las,
        'best_dev_accuracy': max(trainer.best_score, 0.0),
        'best_epoch': trainer.best_epoch,
        'total_epochs': len(history),
        'stopped': trainer.should_stop(),
    }

    save_results(
        config=config,
        options=options,
        results=results,
        history=history,
        results_dir=Path(config.results_dir)
    )

    return results
