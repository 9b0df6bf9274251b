import os
import time
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

import torch.optim as optim

from stack_lstm_parser.data.dependency import Instance
from stack_lstm_parser.evaluation import Evaluator
from stack_lstm_parser.models.parser import StackLSTMParser
from stack_lstm_parser.trainers.train_config import TrainConfig
from stack_lstm_parser.utils.logs import train_logger


class BaseTrainer(ABC):
    """
    Epoch loop, held-out evaluation and best-model checkpointing.

    Training stops cooperatively: ``stop_event`` is only looked at between
    sentences, so a sentence that has started is always finished.
    """

    def __init__(
        self,
        model: StackLSTMParser,
        train_instances: Sequence[Instance],
        dev_instances: Optional[Sequence[Instance]],
        config: TrainConfig,
        device: str = 'cpu',
        stop_event: Optional[threading.Event] = None,
    ):
        self.model = model.to(device)
        self.train_instances = list(train_instances)
        self.dev_instances = list(dev_instances) if dev_instances else []
        self.config = config
        self.device = device
        self.stop_event = stop_event if stop_event is not None else threading.Event()

        self.evaluator = Evaluator()

        if config.optimizer == 'sgd':
            self.optimizer = optim.SGD(model.parameters(), lr=config.lr, weight_decay=config.weight_decay)
            self.scheduler = optim.lr_scheduler.LambdaLR(
                self.optimizer, lambda epoch: 1.0 / (1.0 + config.eta_decay * epoch)
            )
        elif config.optimizer == 'adam':
            self.optimizer = optim.Adam(model.parameters(), lr=config.lr, weight_decay=config.weight_decay)
            self.scheduler = None
        else:
            raise ValueError(f"Unknown optimizer: {config.optimizer}")

        self.best_score = -1.0
        self.best_uas = 0.0
        self.best_las = 0.0
        self.best_epoch = 0

        self.history: List[Dict] = []

        if not os.path.exists(config.save_dir):
            os.makedirs(config.save_dir)

    @property
    def model_path(self) -> str:
        return os.path.join(self.config.save_dir, self.config.model_name)

    def should_stop(self) -> bool:
        return self.stop_event.is_set()

    @abstractmethod
    def train_epoch(self, epoch: int) -> Dict:
        """
        Train one epoch.

        Returns:
            Dict with at least 'loss', 'right', 'actions' and 'sentences'
        """
        raise NotImplementedError

    def evaluate(self, instances: Optional[Sequence[Instance]] = None) -> Dict:
        if instances is None:
            instances = self.dev_instances
        return self.evaluator.evaluate_parser(self.model, instances)

    def evaluate_and_checkpoint(self, epoch: int) -> Optional[Dict]:
        """Evaluate on the held-out set and save the model if it improved"""
        if not self.dev_instances:
            return None

        results = self.evaluate()
        if results['accuracy'] > self.best_score:
            self.best_score = results['accuracy']
            self.best_uas = results['uas']
            self.best_las = results['las']
            self.best_epoch = epoch
            train_logger.info(
                f"New best model! Heads correct: {results['accuracy'] * 100:.2f}% | "
                f"UAS: {results['uas']:.2f}% | LAS: {results['las']:.2f}%"
            )
            self.model.save(self.model_path, compress=self.config.compress)
        return results

    def train(self, num_epochs: Optional[int] = None) -> List[Dict]:
        num_epochs = num_epochs if num_epochs is not None else self.config.num_epochs
        train_logger.info(f"Starting training for {num_epochs} epochs on {len(self.train_instances)} sentences")
        train_logger.info(f"Device: {self.device}")

        for epoch in range(1, num_epochs + 1):
            if self.should_stop():
                break
            start_time = time.time()

            stats = self.train_epoch(epoch)
            results = self.evaluate_and_checkpoint(epoch)
            if results is None:
                # Nothing to select on: keep the latest model
                self.model.save(self.model_path, compress=self.config.compress)

            if self.scheduler is not None:
                self.scheduler.step()

            epoch_time = time.time() - start_time
            accuracy = stats['right'] / stats['actions'] if stats['actions'] else 0.0
            dev_uas = results['uas'] if results else None
            dev_las = results['las'] if results else None

            train_logger.info(
                f"Epoch {epoch}/{num_epochs} | Loss: {stats['loss']:.4f} | "
                f"Action accuracy: {accuracy * 100:.2f}% | "
                + (f"UAS: {dev_uas:.2f}% | LAS: {dev_las:.2f}% | " if results else "")
                + f"Time: {epoch_time:.1f}s"
            )

            self.history.append({
                'epoch': epoch,
                'train_loss': stats['loss'],
                'train_action_accuracy': accuracy,
                'sentences': stats['sentences'],
                'dev_uas': dev_uas,
                'dev_las': dev_las,
                'dev_accuracy': results['accuracy'] if results else None,
                'time': epoch_time
            })

            if self.should_stop():
                train_logger.warning(f"Stop requested, ending training after epoch {epoch}")
                break

        train_logger.info(
            f"Training completed! Best: Epoch {self.best_epoch} | "
            f"UAS: {self.best_uas:.2f}% | LAS: {self.best_las:.2f}%"
        )

        return self.history
