import signal
import threading
from pathlib import Path

import click

from stack_lstm_parser.utils.constants import config


def _install_stop_handler(stop_event: threading.Event):
    """First Ctrl-C finishes the current sentence and stops; the second one kills"""
    def handler(signum, frame):
        from stack_lstm_parser.utils.logs import train_logger
        train_logger.warning("Interrupt received, stopping after the current sentence")
        stop_event.set()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, handler)


@click.command()
@click.option('--train-file', '-T', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Training corpus (CoNLL-U)')
@click.option('--dev-file', '-d', default=None, type=click.Path(exists=True, dir_okay=False),
              help='Held-out corpus used for model selection (CoNLL-U)')
@click.option('--pretrained', '-w', default=None, type=click.Path(exists=True, dir_okay=False),
              help='Pretrained word vectors (word v1 ... vd per line)')
@click.option('--save-dir', '-s', default=None, help='Directory for the best model (overrides config.yaml)')
@click.option('--model-name', default=None, help='File name of the saved model')
@click.option('--epochs', default=None, type=int, help='Number of epochs')
@click.option('--optimizer', default=None, type=click.Choice(['sgd', 'adam'], case_sensitive=False))
@click.option('--lr', default=None, type=float, help='Learning rate')
@click.option('--unk-prob', default=None, type=float, help='Probability of replacing a word with UNK')
@click.option('--eval-every', default=None, type=int, help='Evaluate every N sentences (0 = end of epoch)')
@click.option('--seed', default=None, type=int, help='Random seed')
@click.option('--lowercase/--no-lowercase', default=None, help='Lowercase word forms')
@click.option('--compress/--no-compress', default=None, help='Gzip the saved model')
@click.option('--no-pos', is_flag=True, default=False, help='Do not use POS tags')
def train(train_file: str, dev_file: str, pretrained: str, save_dir: str, model_name: str,
          epochs: int, optimizer: str, lr: float, unk_prob: float, eval_every: int, seed: int,
          lowercase: bool, compress: bool, no_pos: bool):
    """Train a Stack-LSTM parser on a CoNLL-U treebank."""
    from dataclasses import replace

    from stack_lstm_parser.models.options import ParserOptions
    from stack_lstm_parser.scripts.train import run_training
    from stack_lstm_parser.trainers.train_config import TrainConfig

    train_config = TrainConfig.from_config(
        config,
        train_file=train_file,
        dev_file=dev_file,
        pretrained_file=pretrained,
        save_dir=save_dir,
        model_name=model_name,
        num_epochs=epochs,
        optimizer=optimizer.lower() if optimizer else None,
        lr=lr,
        unk_prob=unk_prob,
        eval_every=eval_every,
        seed=seed,
        lowercase=lowercase,
        compress=compress,
    )
    options = ParserOptions.from_config(config)
    if no_pos:
        options = replace(options, use_pos=False)

    stop_event = threading.Event()
    _install_stop_handler(stop_event)

    results = run_training(train_config, options, stop_event=stop_event)
    click.echo(f"Model saved to: {results['model_path']}")


@click.command()
@click.option('--model', '-m', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Saved model')
@click.option('--input', '-i', 'input_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Sentences to parse (CoNLL-U)')
@click.option('--output', '-o', default=None, type=click.Path(dir_okay=False),
              help='Where to write the parsed sentences (CoNLL-U)')
def parse(model: str, input_file: str, output: str):
    """Parse a CoNLL-U file with a trained model."""
    from stack_lstm_parser.scripts.parse import run_parsing

    results = run_parsing(Path(model), Path(input_file), Path(output) if output else None)
    if results['has_gold']:
        click.echo(f"UAS: {results['uas']:.2f}%  LAS: {results['las']:.2f}%")


@click.command()
@click.option('--input', '-i', 'input_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Treebank (CoNLL-U)')
def oracle(input_file: str):
    """Print the arc-standard oracle action sequence of every sentence."""
    from stack_lstm_parser.data.loader import CoNLLUDataset, to_internal_heads
    from stack_lstm_parser.models.parse_tree import recover_parse_tree
    from stack_lstm_parser.models.transition_system import ActionSet, Oracle
    from stack_lstm_parser.utils.exceptions import OracleError
    from stack_lstm_parser.utils.logs import data_logger

    sentences = CoNLLUDataset(Path(input_file)).get_sentences()
    transition_oracle = Oracle()
    skipped = 0
    for i, sentence in enumerate(sentences):
        heads, labels = to_internal_heads(sentence)
        try:
            actions = transition_oracle.get_oracle_sequence(heads, labels)
        except OracleError as e:
            data_logger.warning(f"Sentence {i}: {e}")
            skipped += 1
            continue

        # Replaying the sequence must give back the gold tree
        action_set = ActionSet(list(dict.fromkeys(actions)))
        names = action_set.names()
        tree = recover_parse_tree(range(len(heads)), [names.index(a) for a in actions], action_set)
        if tree.get_parents() != heads:
            raise click.ClickException(f"Oracle does not rebuild sentence {i}")

        click.echo(' '.join(word_info['form'] for word_info in sentence))
        for action in actions:
            click.echo(action)
        click.echo()

    if skipped:
        click.echo(f"Skipped {skipped} of {len(sentences)} sentences", err=True)


@click.group()
def cli():
    """Stack-LSTM Dependency Parser CLI"""


cli.add_command(train)
cli.add_command(parse)
cli.add_command(oracle)

def main():
    cli()


if __name__ == "__main__":
    main()
