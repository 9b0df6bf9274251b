import pytest
import torch

from stack_lstm_parser.data import Vocabulary, load_pretrained
from stack_lstm_parser.utils.exceptions import VocabularyError


def test_special_symbols():
    vocab = Vocabulary()
    assert vocab.int_to_word(vocab.unk_id) == '<UNK>'
    assert vocab.int_to_word(vocab.root_id) == 'ROOT'
    assert vocab.int_to_pos(vocab.root_pos_id) == 'ROOT'


def test_build_vocab_counts_training_words(vocab):
    saw = vocab.word_to_int('saw')
    she = vocab.word_to_int('She')
    assert vocab.word_counter['saw'] == 2
    assert she in vocab.singletons
    assert saw not in vocab.singletons
    assert saw in vocab.training_words
    assert vocab.root_id in vocab.training_words
    assert vocab.num_actions == 6


def test_unknown_strings_map_to_unk(vocab):
    assert vocab.word_to_int('zebra') == vocab.unk_id
    assert vocab.pos_to_int('INTJ') == vocab.unk_pos_id
    assert vocab.normalize(vocab.unk_id) == vocab.unk_id


def test_finalize_freezes(vocab):
    action_set = vocab.finalize()
    assert vocab.is_finalized()
    assert vocab.finalize() is action_set

    with pytest.raises(VocabularyError):
        vocab.add_word('zebra')
    with pytest.raises(VocabularyError):
        vocab.add_pos('INTJ')
    with pytest.raises(VocabularyError):
        vocab.add_action('LEFT-ARC(new)')
    with pytest.raises(VocabularyError):
        vocab.add_word('saw', training=True)
    # Already known: nothing to register
    assert vocab.add_word('saw') == vocab.word_to_int('saw')


def test_id_range_checks(vocab):
    vocab.finalize()
    with pytest.raises(VocabularyError):
        vocab.int_to_word(vocab.num_words)
    with pytest.raises(VocabularyError):
        vocab.int_to_pos(-1)
    with pytest.raises(VocabularyError):
        vocab.int_to_action(vocab.num_actions)
    with pytest.raises(VocabularyError):
        vocab.action_to_int('RIGHT-ARC(unseen)')


def test_relations_come_from_actions(vocab):
    vocab.finalize()
    assert set(vocab.action_set.relations) == {'nsubj', 'obj', 'root', 'advmod', 'det'}
    assert vocab.int_to_rel(vocab.rel_to_int('det')) == 'det'


def test_action_set_requires_finalize():
    vocab = Vocabulary()
    vocab.add_action('SHIFT')
    with pytest.raises(VocabularyError):
        vocab.action_set


def test_state_dict_round_trip(vocab):
    restored = Vocabulary.from_state_dict(vocab.state_dict())
    assert not restored.is_finalized()
    assert restored.word2idx == vocab.word2idx
    assert restored.pos2idx == vocab.pos2idx
    assert restored.action2idx == vocab.action2idx
    assert restored.singletons == vocab.singletons
    assert restored.training_words == vocab.training_words


def test_load_pretrained(tmp_path):
    path = tmp_path / "vectors.txt"
    path.write_text("3 2\nfoo 0.1 0.2\nbar 0.3 0.4\nbad 0.5\n", encoding="utf-8")

    vocab = Vocabulary()
    pretrained = load_pretrained(path, vocab)

    assert len(pretrained) == 2
    assert pretrained.dim == 2
    foo = vocab.word_to_int('foo')
    assert foo in pretrained
    assert torch.allclose(pretrained.lookup(foo), torch.tensor([0.1, 0.2]))
    assert vocab.word_to_int('bad') == vocab.unk_id
    assert pretrained.lookup(vocab.unk_id) is None
    # Registered, but not as training words
    assert foo not in vocab.training_words


def test_no_pretrained_file():
    pretrained = load_pretrained(None, Vocabulary())
    assert len(pretrained) == 0
    assert pretrained.dim == 0
    assert pretrained.lookup(3) is None


@pytest.mark.parametrize('text', [
    "saw\t0.1\t0.2\t0.3\ncat\t0.4\t0.5\t0.6\n",
    "saw  0.1 0.2 0.3\ncat 0.4  0.5 0.6\n",
])
def test_load_pretrained_any_whitespace(tmp_path, text):
    path = tmp_path / "vectors.txt"
    path.write_text(text, encoding="utf-8")
    vocab = Vocabulary()
    pretrained = load_pretrained(path, vocab)

    assert len(pretrained) == 2
    assert pretrained.dim == 3
    assert torch.allclose(pretrained.lookup(vocab.word_to_int('cat')), torch.tensor([0.4, 0.5, 0.6]))
