"""
Stack-LSTM transition-based dependency parser

Three stack LSTMs summarize the stack, the buffer and the history of actions.
At each step the parser scores the legal actions from those summaries; arcs
compose the dependent into its head so that a subtree is pushed back onto
the stack as a single vector.
"""

import gzip
import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

import torch
import torch.nn as nn
import torch.nn.functional as F

from stack_lstm_parser.data.pretrained import PretrainedEmbeddings
from stack_lstm_parser.data.vocabulary import Vocabulary
from stack_lstm_parser.models.modules import Composition, StackLSTM, TokenEmbedder, TransitionClassifier
from stack_lstm_parser.models.options import ParserOptions
from stack_lstm_parser.models.parse_tree import ParseTree
from stack_lstm_parser.models.transition_system import ActionKind, legal_actions
from stack_lstm_parser.utils.exceptions import ConfigurationMismatchError, IllegalActionError
from stack_lstm_parser.utils.logs import logger

GZIP_MAGIC = b'\x1f\x8b'


@dataclass
class ParseResult:
    actions: List[int]
    loss: Optional[torch.Tensor]  # None when decoding
    right: int                    # Steps where the greedy choice matched the oracle
    tree: ParseTree


class StackLSTMParser(nn.Module):
    def __init__(
        self,
        options: ParserOptions,
        vocab: Vocabulary,
        pretrained: Optional[PretrainedEmbeddings] = None,
    ):
        super().__init__()
        self.options = options
        self.vocab = vocab
        self.pretrained = pretrained if pretrained is not None else PretrainedEmbeddings()
        # Table sizes depend on the vocabulary, so it is frozen before anything is built
        self.action_set = vocab.finalize()

        self.embedder = TokenEmbedder(
            num_words=vocab.num_words,
            num_pos=vocab.num_pos,
            input_dim=options.input_dim,
            pos_dim=options.pos_dim,
            output_dim=options.lstm_input_dim,
            use_pos=options.use_pos,
            pretrained_dim=self.pretrained.dim,
        )
        self.action_embedding = nn.Embedding(len(self.action_set), options.action_dim)
        self.relation_embedding = nn.Embedding(max(self.action_set.num_relations, 1), options.rel_dim)

        self.stack_lstm = StackLSTM(options.lstm_input_dim, options.hidden_dim, options.layers)
        self.buffer_lstm = StackLSTM(options.lstm_input_dim, options.hidden_dim, options.layers)
        self.action_lstm = StackLSTM(options.action_dim, options.hidden_dim, options.layers)

        self.composition = Composition(options.lstm_input_dim, options.rel_dim)
        self.classifier = TransitionClassifier(options.hidden_dim, len(self.action_set))

        logger.debug(
            f"Built parser with {sum(p.numel() for p in self.parameters())} parameters "
            f"({len(self.action_set)} actions, pretrained dim {self.pretrained.dim})"
        )

    @property
    def device(self) -> torch.device:
        return self.action_embedding.weight.device

    # ------------------------------------------------------------------
    # Control loop
    # ------------------------------------------------------------------

    def log_prob_parse(
        self,
        raw_sent: Sequence[int],
        sent: Sequence[int],
        sent_pos: Sequence[int],
        correct_actions: Optional[Sequence[int]] = None,
    ) -> ParseResult:
        """
        Run the parser over one sentence (ROOT last).

        Args:
            raw_sent: word ids used for the pretrained lookup
            sent: normalized word ids (UNK substituted)
            sent_pos: POS ids
            correct_actions: oracle action ids. When given, they are followed
                verbatim and the loss is accumulated; otherwise the best legal
                action is chosen at each step.
        """
        if not len(raw_sent) == len(sent) == len(sent_pos):
            raise ValueError("raw_sent, sent and sent_pos must have the same length")
        if not sent:
            raise ValueError("A sentence holds at least the ROOT token")

        training = correct_actions is not None
        root_index = len(sent) - 1
        tree = ParseTree(sent, labeled=True)

        stack_state = self.stack_lstm.initial_state()
        buffer_state = self.buffer_lstm.initial_state()
        action_state = self.action_lstm.initial_state()

        token_vectors = [
            self.embedder(sent[i], sent_pos[i], self.pretrained.lookup(raw_sent[i]))
            for i in range(len(sent))
        ]

        # Front of the buffer is the end of the list; pushed right to left
        buffer = list(range(len(sent) - 1, -1, -1))
        buffer_vectors = [token_vectors[i] for i in buffer]
        for vector in buffer_vectors:
            buffer_state.push(vector)

        stack: List[int] = []
        stack_vectors: List[torch.Tensor] = []

        actions: List[int] = []
        losses: List[torch.Tensor] = []
        right = 0

        while buffer or len(stack) > 1:
            legal = legal_actions(self.action_set, len(buffer), stack, root_index)
            if not legal:
                raise IllegalActionError(
                    f"No legal action (buffer={len(buffer)}, stack={len(stack)}); "
                    f"the action set needs SHIFT and both arc directions"
                )
            scores = self.classifier(stack_state.summary(), buffer_state.summary(), action_state.summary())
            legal_scores = scores[torch.tensor(legal, device=self.device)]
            best = legal[int(torch.argmax(legal_scores))]

            step = len(actions)
            if training:
                if step >= len(correct_actions):
                    raise IllegalActionError(
                        f"Oracle ran out of actions after {step} steps "
                        f"(buffer={len(buffer)}, stack={len(stack)})"
                    )
                action_id = correct_actions[step]
                if action_id not in legal:
                    raise IllegalActionError(
                        f"Oracle action {self.action_set[action_id].name} at step {step} is illegal "
                        f"(buffer={len(buffer)}, stack={len(stack)})"
                    )
                if best == action_id:
                    right += 1
                log_probs = F.log_softmax(legal_scores, dim=0)
                losses.append(-log_probs[legal.index(action_id)])
            else:
                action_id = best

            action = self.action_set[action_id]
            if action.kind == ActionKind.SHIFT:
                stack.append(buffer.pop())
                buffer_state.pop()
                stack_vectors.append(buffer_vectors.pop())
                stack_state.push(stack_vectors[-1])
            else:
                top, top_vector = stack.pop(), stack_vectors.pop()
                below, below_vector = stack.pop(), stack_vectors.pop()
                stack_state.pop()
                stack_state.pop()
                if action.kind == ActionKind.RIGHT_ARC:
                    head, dep, head_vector, dep_vector = below, top, below_vector, top_vector
                else:
                    head, dep, head_vector, dep_vector = top, below, top_vector, below_vector
                relation = self.relation_embedding(torch.tensor(action.label_id, device=self.device))
                composed = self.composition(head_vector, dep_vector, relation)
                stack.append(head)
                stack_vectors.append(composed)
                stack_state.push(composed)
                tree.set_parent(dep, head, action.label)

            actions.append(action_id)
            action_state.push(self.action_embedding(torch.tensor(action_id, device=self.device)))

        if training and len(actions) != len(correct_actions):
            raise IllegalActionError(
                f"Oracle has {len(correct_actions)} actions but the parse finished after {len(actions)}"
            )

        loss = torch.stack(losses).sum() if training else None
        return ParseResult(actions=actions, loss=loss, right=right, tree=tree)

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def compute_loss(self, instance, words: Optional[Sequence[int]] = None) -> ParseResult:
        """Training pass over an instance; ``words`` overrides the normalized ids (UNK replacement)"""
        return self.log_prob_parse(
            instance.raw,
            instance.words if words is None else words,
            instance.pos,
            instance.actions,
        )

    def decode(self, instance) -> ParseResult:
        with torch.no_grad():
            return self.log_prob_parse(instance.raw, instance.words, instance.pos)

    def parse(self, instance) -> List[int]:
        return self.decode(instance).actions

    def predict(self, instance) -> ParseTree:
        return self.decode(instance).tree

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Union[str, Path], compress: bool = False):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Order matters: the vocabulary is finalized before parameters are read back
        checkpoint = {
            'options': self.options.to_dict(),
            'vocab': self.vocab.state_dict(),
            'pretrained': self.pretrained.state_dict(),
            'model_state_dict': self.state_dict(),
        }

        if compress:
            buffer = io.BytesIO()
            torch.save(checkpoint, buffer)
            with gzip.open(path, 'wb') as f:
                f.write(buffer.getvalue())
        else:
            torch.save(checkpoint, path)
        logger.info(f"Saved model to {path}{' (compressed)' if compress else ''}")

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        options: Optional[ParserOptions] = None,
        map_location: str = 'cpu',
    ) -> 'StackLSTMParser':
        """
        Load a saved parser. If ``options`` is given, the stored options must
        match it exactly.
        """
        path = Path(path)
        with open(path, 'rb') as f:
            compressed = f.read(2) == GZIP_MAGIC

        if compressed:
            with gzip.open(path, 'rb') as f:
                state = torch.load(io.BytesIO(f.read()), map_location=map_location, weights_only=False)
        else:
            state = torch.load(path, map_location=map_location, weights_only=False)

        model = cls._init_model_with_state_dict(state, options)
        model.eval()
        logger.info(f"Loaded model from {path}")
        return model

    @classmethod
    def _init_model_with_state_dict(cls, state: dict, options: Optional[ParserOptions] = None):
        stored = ParserOptions.from_dict(state['options'])
        if options is not None and options != stored:
            raise ConfigurationMismatchError(
                f"Model options do not match: expected {options}, found {stored}"
            )

        vocab = Vocabulary.from_state_dict(state['vocab'])
        pretrained = PretrainedEmbeddings.from_state_dict(state['pretrained'])
        model = cls(stored, vocab, pretrained)
        model.load_state_dict(state['model_state_dict'])
        return model
