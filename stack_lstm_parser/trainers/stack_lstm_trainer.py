"""
Trainer for the Stack-LSTM parser (one sentence per update)
"""

import math
import random
from typing import Dict, List

import torch
from tqdm import tqdm

from stack_lstm_parser.data.dependency import Instance
from stack_lstm_parser.models.options import UnkStrategy
from stack_lstm_parser.trainers.base_trainer import BaseTrainer
from stack_lstm_parser.utils.logs import train_logger


class StackLSTMTrainer(BaseTrainer):

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.rng = random.Random(self.config.seed)
        self.singletons = self.model.vocab.singletons
        self.updates = 0

    def replace_unknown(self, instance: Instance) -> List[int]:
        """Word dropout: training words are randomly swapped for UNK"""
        strategy = self.model.options.unk_strategy
        unk_prob = self.config.unk_prob
        if strategy == UnkStrategy.NONE or unk_prob <= 0:
            return instance.words

        unk_id = self.model.vocab.unk_id
        words = list(instance.words)
        # The last position is ROOT
        for i in range(len(words) - 1):
            if strategy == UnkStrategy.SINGLETONS and instance.raw[i] not in self.singletons:
                continue
            if self.rng.random() < unk_prob:
                words[i] = unk_id
        return words

    def train_epoch(self, epoch: int) -> Dict:
        self.model.train()
        order = list(range(len(self.train_instances)))
        self.rng.shuffle(order)

        total_loss = 0.0
        total_right = 0
        total_actions = 0
        num_sentences = 0

        # Since the last status line
        window_loss = 0.0
        window_right = 0
        window_actions = 0

        progress_bar = tqdm(order, desc=f'Epoch {epoch}', leave=False)

        for idx in progress_bar:
            if self.should_stop():
                train_logger.warning(f"Stop requested after {num_sentences} sentences of epoch {epoch}")
                break

            instance = self.train_instances[idx]
            words = self.replace_unknown(instance)
            result = self.model.compute_loss(instance, words)

            self.optimizer.zero_grad()
            result.loss.backward()
            torch.nn.utils.clip_grad_norm_(self.model.parameters(), self.config.clip_grad)
            self.optimizer.step()
            self.updates += 1

            loss = result.loss.item()
            num_actions = len(instance.actions)
            total_loss += loss
            total_right += result.right
            total_actions += num_actions
            num_sentences += 1
            window_loss += loss
            window_right += result.right
            window_actions += num_actions

            progress_bar.set_postfix({
                'loss': f'{loss:.4f}',
            })

            if self.config.status_every and num_sentences % self.config.status_every == 0:
                train_logger.info(
                    f"update #{self.updates} (epoch {epoch}) | "
                    f"per-action ppl: {math.exp(window_loss / max(window_actions, 1)):.4f} | "
                    f"err: {(window_actions - window_right) / max(window_actions, 1):.4f}"
                )
                window_loss, window_right, window_actions = 0.0, 0, 0

            if self.config.eval_every and num_sentences % self.config.eval_every == 0:
                self.evaluate_and_checkpoint(epoch)
                self.model.train()

        return {
            'loss': total_loss / num_sentences if num_sentences else 0.0,
            'right': total_right,
            'actions': total_actions,
            'sentences': num_sentences,
        }
