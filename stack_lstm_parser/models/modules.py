"""
Neural building blocks of the Stack-LSTM parser
"""

from typing import List, Optional, Tuple

import torch
import torch.nn as nn
import torch.nn.functional as F

from stack_lstm_parser.utils.exceptions import StackUnderflowError

LayerStates = List[Tuple[torch.Tensor, torch.Tensor]]


class StackLSTM(nn.Module):
    """
    Multi-layer LSTM whose input sequence can shrink as well as grow.

    The module only holds parameters. The sequence being encoded lives in a
    ``StackLSTMState`` obtained from ``initial_state()``, so each sentence
    gets its own runtime state and nothing leaks between sentences.
    """

    def __init__(self, input_dim: int, hidden_dim: int, layers: int):
        super().__init__()
        self.input_dim = input_dim
        self.hidden_dim = hidden_dim
        self.cells = nn.ModuleList([
            nn.LSTMCell(input_dim if i == 0 else hidden_dim, hidden_dim)
            for i in range(layers)
        ])
        # Stands in for the empty sequence
        self.guard = nn.Parameter(torch.empty(input_dim))
        nn.init.uniform_(self.guard, -0.1, 0.1)

    def step(self, x: torch.Tensor, prev: Optional[LayerStates]) -> LayerStates:
        states = []
        for i, cell in enumerate(self.cells):
            h, c = cell(x, None if prev is None else prev[i])
            states.append((h, c))
            x = h
        return states

    def initial_state(self) -> 'StackLSTMState':
        return StackLSTMState(self)


class StackLSTMState:
    """Append-only log of recurrent checkpoints; pop returns to the previous one"""

    def __init__(self, encoder: StackLSTM):
        self.encoder = encoder
        self._checkpoints: List[LayerStates] = []
        self.reset()

    def reset(self):
        self._checkpoints = [self.encoder.step(self.encoder.guard, None)]

    def push(self, x: torch.Tensor):
        self._checkpoints.append(self.encoder.step(x, self._checkpoints[-1]))

    def pop(self):
        if len(self._checkpoints) <= 1:
            raise StackUnderflowError("Pop on an empty stack LSTM")
        self._checkpoints.pop()

    def summary(self) -> torch.Tensor:
        # Output of the top layer
        return self._checkpoints[-1][-1][0]

    def __len__(self):
        return len(self._checkpoints) - 1


class Composition(nn.Module):
    """Merges a dependent subtree into its head: tanh(W [head; dep; rel] + b)"""

    def __init__(self, token_dim: int, rel_dim: int):
        super().__init__()
        self.linear = nn.Linear(2 * token_dim + rel_dim, token_dim)

    def forward(self, head: torch.Tensor, dependent: torch.Tensor, relation: torch.Tensor) -> torch.Tensor:
        return torch.tanh(self.linear(torch.cat([head, dependent, relation], dim=-1)))

    compose = forward


class TransitionClassifier(nn.Module):
    """Scores every action id from the stack, buffer and action summaries"""

    def __init__(self, hidden_dim: int, num_actions: int):
        super().__init__()
        self.state = nn.Linear(3 * hidden_dim, hidden_dim)
        self.output = nn.Linear(hidden_dim, num_actions)

    def forward(self, stack: torch.Tensor, buffer: torch.Tensor, action: torch.Tensor) -> torch.Tensor:
        parser_state = F.relu(self.state(torch.cat([stack, buffer, action], dim=-1)))
        return self.output(parser_state)

    score = forward


class TokenEmbedder(nn.Module):
    """
    Input vector of a token before it enters the buffer:
    relu(W_w word + b + W_p pos + W_t pretrained).

    The word embedding is looked up by the normalized (possibly UNK) id; the
    pretrained vector, when the caller has one, comes from the raw id.
    """

    def __init__(
        self,
        num_words: int,
        num_pos: int,
        input_dim: int,
        pos_dim: int,
        output_dim: int,
        use_pos: bool = True,
        pretrained_dim: int = 0,
    ):
        super().__init__()
        self.use_pos = use_pos
        self.word_embedding = nn.Embedding(num_words, input_dim)
        self.word_proj = nn.Linear(input_dim, output_dim)

        if use_pos:
            self.pos_embedding = nn.Embedding(num_pos, pos_dim)
            self.pos_proj = nn.Linear(pos_dim, output_dim, bias=False)

        self.pretrained_proj = nn.Linear(pretrained_dim, output_dim, bias=False) if pretrained_dim else None

    def forward(self, word_id: int, pos_id: int, pretrained: Optional[torch.Tensor] = None) -> torch.Tensor:
        device = self.word_embedding.weight.device
        x = self.word_proj(self.word_embedding(torch.tensor(word_id, device=device)))
        if self.use_pos:
            x = x + self.pos_proj(self.pos_embedding(torch.tensor(pos_id, device=device)))
        if pretrained is not None and self.pretrained_proj is not None:
            x = x + self.pretrained_proj(pretrained.to(device))
        return F.relu(x)
