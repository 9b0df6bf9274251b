from .train_config import TrainConfig
from .base_trainer import BaseTrainer
from .stack_lstm_trainer import StackLSTMTrainer

__all__ = [
    'TrainConfig',
    'BaseTrainer',
    'StackLSTMTrainer',
]
