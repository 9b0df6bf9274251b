import dataclasses

import pytest
import torch

from stack_lstm_parser.data import Vocabulary, build_training_data, encode_instances, load_pretrained
from stack_lstm_parser.models.parser import GZIP_MAGIC, StackLSTMParser
from stack_lstm_parser.utils.exceptions import ConfigurationMismatchError


@pytest.mark.parametrize("compress", [False, True])
def test_save_load_round_trip(parser, instances, tmp_path, compress):
    path = tmp_path / "model.pt"
    parser.save(path, compress=compress)

    with open(path, 'rb') as f:
        assert (f.read(2) == GZIP_MAGIC) is compress

    loaded = StackLSTMParser.load(path, options=parser.options)
    assert loaded.options == parser.options
    assert loaded.vocab.is_finalized()
    assert loaded.vocab.word2idx == parser.vocab.word2idx
    assert loaded.action_set.names() == parser.action_set.names()

    parser.eval()
    for instance in instances:
        assert loaded.parse(instance) == parser.parse(instance)


def test_load_rejects_other_options(parser, tmp_path, small_options):
    path = tmp_path / "model.pt"
    parser.save(path)
    with pytest.raises(ConfigurationMismatchError):
        StackLSTMParser.load(path, options=dataclasses.replace(small_options, hidden_dim=11))


def test_round_trip_with_pretrained(sentences, small_options, tmp_path):
    vectors = tmp_path / "vectors.txt"
    vectors.write_text("2 3\nsaw 0.1 0.2 0.3\ncat 0.4 0.5 0.6\n", encoding="utf-8")

    vocab = Vocabulary()
    kept, action_sequences = build_training_data(sentences, vocab)
    pretrained = load_pretrained(vectors, vocab)
    torch.manual_seed(1)
    parser = StackLSTMParser(small_options, vocab, pretrained)

    path = tmp_path / "model.pt"
    parser.save(path)
    loaded = StackLSTMParser.load(path)

    assert len(loaded.pretrained) == 2
    assert torch.allclose(loaded.pretrained.lookup(vocab.word_to_int('cat')), torch.tensor([0.4, 0.5, 0.6]))
    # "cat" is known through the pretrained table only
    assert loaded.vocab.normalize(loaded.vocab.word_to_int('cat')) == loaded.vocab.unk_id

    parser.eval()
    for instance in encode_instances(kept, vocab, action_sequences):
        assert loaded.parse(instance) == parser.parse(instance)


def test_lowercasing_is_stored_with_the_model(sentences, small_options, tmp_path):
    vocab = Vocabulary()
    kept, action_sequences = build_training_data(sentences, vocab, lowercase=True)
    parser = StackLSTMParser(small_options, vocab)

    path = tmp_path / "model.pt"
    parser.save(path)
    loaded = StackLSTMParser.load(path)

    assert loaded.vocab.lowercase
    instance = encode_instances(kept, loaded.vocab)[1]  # She runs fast
    assert instance.forms[0] == 'She'
    assert instance.raw[0] == loaded.vocab.word_to_int('she')
    assert instance.words[0] != loaded.vocab.unk_id
