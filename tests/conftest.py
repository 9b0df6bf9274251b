import pytest
import torch

from stack_lstm_parser.data import Vocabulary, build_training_data, encode_instances
from stack_lstm_parser.models.options import ParserOptions, UnkStrategy
from stack_lstm_parser.models.parser import StackLSTMParser


CONLLU_TEXT = """# text = I saw it
1\tI\tI\tPRON\t_\t_\t2\tnsubj\t_\t_
2\tsaw\tsee\tVERB\t_\t_\t0\troot\t_\t_
3\tit\tit\tPRON\t_\t_\t2\tobj\t_\t_

# text = She runs fast
1\tShe\tshe\tPRON\t_\t_\t2\tnsubj\t_\t_
2\truns\trun\tVERB\t_\t_\t0\troot\t_\t_
3\tfast\tfast\tADV\t_\t_\t2\tadvmod\t_\t_

# text = the dog saw it
1\tthe\tthe\tDET\t_\t_\t2\tdet\t_\t_
2\tdog\tdog\tNOUN\t_\t_\t3\tnsubj\t_\t_
3\tsaw\tsee\tVERB\t_\t_\t0\troot\t_\t_
4\tit\tit\tPRON\t_\t_\t3\tobj\t_\t_

"""


def make_word(idx, form, upos, head, deprel):
    return {'id': idx, 'form': form, 'lemma': form.lower(), 'upos': upos, 'xpos': '_',
            'feats': None, 'head': head, 'deprel': deprel}


@pytest.fixture
def sentences():
    return [
        [make_word(1, 'I', 'PRON', 2, 'nsubj'), make_word(2, 'saw', 'VERB', 0, 'root'),
         make_word(3, 'it', 'PRON', 2, 'obj')],
        [make_word(1, 'She', 'PRON', 2, 'nsubj'), make_word(2, 'runs', 'VERB', 0, 'root'),
         make_word(3, 'fast', 'ADV', 2, 'advmod')],
        [make_word(1, 'the', 'DET', 2, 'det'), make_word(2, 'dog', 'NOUN', 3, 'nsubj'),
         make_word(3, 'saw', 'VERB', 0, 'root'), make_word(4, 'it', 'PRON', 3, 'obj')],
    ]


@pytest.fixture
def training_data(sentences):
    vocab = Vocabulary()
    kept, action_sequences = build_training_data(sentences, vocab)
    return vocab, kept, action_sequences


@pytest.fixture
def vocab(training_data):
    return training_data[0]


@pytest.fixture
def small_options():
    return ParserOptions(
        use_pos=True,
        layers=1,
        input_dim=8,
        hidden_dim=10,
        action_dim=4,
        lstm_input_dim=8,
        pos_dim=4,
        rel_dim=3,
        unk_strategy=UnkStrategy.SINGLETONS,
    )


@pytest.fixture
def parser(training_data, small_options):
    torch.manual_seed(0)
    vocab = training_data[0]
    return StackLSTMParser(small_options, vocab)


@pytest.fixture
def instances(parser, training_data):
    _, kept, action_sequences = training_data
    return encode_instances(kept, parser.vocab, action_sequences)


@pytest.fixture
def conllu_file(tmp_path):
    path = tmp_path / "train.conllu"
    path.write_text(CONLLU_TEXT, encoding="utf-8")
    return path
