import pytest
from conllu.exceptions import ParseException

from stack_lstm_parser.data import (
    CoNLLUDataset,
    Vocabulary,
    build_training_data,
    encode_instances,
    to_internal_heads,
    write_conllu,
)
from stack_lstm_parser.models.parse_tree import ParseTree

from conftest import make_word

MULTIWORD = """# text = Let's go
1-2\tLet's\t_\t_\t_\t_\t_\t_\t_\t_
1\tLet\tlet\tVERB\t_\t_\t0\troot\t_\t_
2\t's\twe\tPRON\t_\t_\t1\tobj\t_\t_
3\tgo\tgo\tVERB\t_\t_\t1\txcomp\t_\t_

"""


def test_load_conllu(conllu_file):
    sentences = CoNLLUDataset(conllu_file).get_sentences()
    assert len(sentences) == 3
    assert [w['form'] for w in sentences[0]] == ['I', 'saw', 'it']
    assert [w['head'] for w in sentences[2]] == [2, 3, 0, 3]


def test_load_skips_multiword_tokens(tmp_path):
    path = tmp_path / "mwt.conllu"
    path.write_text(MULTIWORD, encoding="utf-8")
    sentence = CoNLLUDataset(path).get_sentences()[0]
    assert [w['id'] for w in sentence] == [1, 2, 3]


def test_load_malformed_file(tmp_path):
    path = tmp_path / "bad.conllu"
    path.write_text("this line has no columns\n\n", encoding="utf-8")
    with pytest.raises(ParseException):
        CoNLLUDataset(path)


def test_internal_heads_put_root_last(sentences):
    heads, labels = to_internal_heads(sentences[0])
    assert heads == [1, 3, 1, -1]
    assert labels == ['nsubj', 'root', 'obj', 'ERROR']


def test_build_training_data_skips_non_projective(sentences):
    crossing = [
        make_word(1, 'a', 'X', 3, 'x'), make_word(2, 'b', 'X', 4, 'y'),
        make_word(3, 'c', 'X', 0, 'root'), make_word(4, 'd', 'X', 3, 'z'),
    ]
    vocab = Vocabulary()
    kept, action_sequences = build_training_data(sentences + [crossing], vocab)
    assert len(kept) == 3
    assert len(action_sequences) == 3
    assert vocab.word_to_int('a') == vocab.unk_id


def test_encode_instances(training_data):
    vocab, kept, action_sequences = training_data
    instances = encode_instances(kept, vocab, action_sequences)
    instance = instances[0]

    assert instance.forms == ['I', 'saw', 'it', 'ROOT']
    assert instance.words[-1] == vocab.root_id
    assert instance.pos[-1] == vocab.root_pos_id
    assert instance.heads == [1, 3, 1, -1]
    assert [vocab.int_to_action(a) for a in instance.actions] == action_sequences[0]
    assert len(instances) == 3


def test_unknown_words_keep_raw_id(training_data):
    vocab, _, _ = training_data
    vocab.add_word('cat')  # e.g. from pretrained vectors
    sentence = [make_word(1, 'cat', 'NOUN', 2, 'nsubj'), make_word(2, 'zzz', 'VERB', 0, 'root')]
    instance = encode_instances([sentence], vocab)[0]

    assert instance.raw[0] == vocab.word_to_int('cat')
    assert instance.words[0] == vocab.unk_id
    assert instance.raw[1] == vocab.unk_id
    assert instance.actions == []


def test_write_conllu_round_trip(training_data, tmp_path):
    vocab, kept, action_sequences = training_data
    instances = encode_instances(kept, vocab, action_sequences)
    trees = [ParseTree.from_heads(i.words, i.heads, i.labels) for i in instances]

    path = tmp_path / "out" / "pred.conllu"
    write_conllu(path, instances, trees)

    written = CoNLLUDataset(path).get_sentences()
    for original, sentence in zip(kept, written):
        assert [w['form'] for w in sentence] == [w['form'] for w in original]
        assert [w['head'] for w in sentence] == [w['head'] for w in original]
        assert [w['deprel'] for w in sentence] == [w['deprel'] for w in original]
        assert [w['lemma'] for w in sentence] == [w['lemma'] for w in original]


def test_write_conllu_length_checks(training_data, tmp_path):
    vocab, kept, action_sequences = training_data
    instances = encode_instances(kept, vocab, action_sequences)
    with pytest.raises(ValueError):
        write_conllu(tmp_path / "pred.conllu", instances, [])
