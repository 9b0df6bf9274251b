import pytest
import torch

from stack_lstm_parser.models.modules import Composition, StackLSTM, TokenEmbedder, TransitionClassifier
from stack_lstm_parser.utils.exceptions import StackUnderflowError


@pytest.fixture
def encoder():
    torch.manual_seed(0)
    return StackLSTM(input_dim=4, hidden_dim=6, layers=2)


def test_summary_defined_on_empty_sequence(encoder):
    state = encoder.initial_state()
    assert len(state) == 0
    assert state.summary().shape == (6,)


def test_push_pop_restores_summary(encoder):
    state = encoder.initial_state()
    empty = state.summary()
    state.push(torch.randn(4))
    after_one = state.summary()
    state.push(torch.randn(4))
    assert len(state) == 2
    assert not torch.equal(state.summary(), after_one)

    state.pop()
    assert torch.equal(state.summary(), after_one)
    state.pop()
    assert torch.equal(state.summary(), empty)


def test_pop_underflow(encoder):
    state = encoder.initial_state()
    with pytest.raises(StackUnderflowError):
        state.pop()


def test_reset_reseeds_guard(encoder):
    state = encoder.initial_state()
    empty = state.summary()
    state.push(torch.randn(4))
    state.reset()
    assert len(state) == 0
    assert torch.equal(state.summary(), empty)


def test_states_are_independent(encoder):
    first = encoder.initial_state()
    second = encoder.initial_state()
    first.push(torch.randn(4))
    assert len(second) == 0


def test_push_is_deterministic(encoder):
    x = torch.randn(4)
    first, second = encoder.initial_state(), encoder.initial_state()
    first.push(x)
    second.push(x)
    assert torch.equal(first.summary(), second.summary())


def test_composition_is_order_sensitive():
    torch.manual_seed(0)
    composition = Composition(token_dim=5, rel_dim=3)
    a, b, c = torch.randn(5), torch.randn(5), torch.randn(5)
    rel1, rel2 = torch.randn(3), torch.randn(3)

    assert composition(a, b, rel1).shape == (5,)
    assert not torch.allclose(composition(a, b, rel1), composition(b, a, rel1))

    # (a <- b) as head of c, against a as head of (b <- c)
    left_first = composition(composition(a, b, rel1), c, rel2)
    right_first = composition(a, composition(b, c, rel2), rel1)
    assert not torch.allclose(left_first, right_first)


def test_classifier_scores_every_action():
    classifier = TransitionClassifier(hidden_dim=6, num_actions=7)
    scores = classifier(torch.randn(6), torch.randn(6), torch.randn(6))
    assert scores.shape == (7,)


def test_token_embedder_without_pretrained_vector():
    torch.manual_seed(0)
    embedder = TokenEmbedder(num_words=5, num_pos=3, input_dim=4, pos_dim=2, output_dim=6, pretrained_dim=3)
    x = embedder(1, 2)
    assert x.shape == (6,)
    assert torch.all(x >= 0)
    with_pretrained = embedder(1, 2, torch.ones(3))
    assert not torch.equal(x, with_pretrained)


def test_token_embedder_ignores_pos_when_disabled():
    torch.manual_seed(0)
    embedder = TokenEmbedder(num_words=5, num_pos=3, input_dim=4, pos_dim=2, output_dim=6, use_pos=False)
    assert torch.equal(embedder(1, 0), embedder(1, 2))
