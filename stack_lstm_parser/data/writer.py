from pathlib import Path
from typing import List, Sequence

from conllu.models import TokenList

from stack_lstm_parser.data.dependency import Instance
from stack_lstm_parser.models.parse_tree import ParseTree
from stack_lstm_parser.utils.logs import data_logger


def tree_to_tokenlist(instance: Instance, tree: ParseTree) -> TokenList:
    """Render a predicted tree, mapping internal positions back to 1-based heads (0 = ROOT)"""
    if len(tree) != len(instance):
        raise ValueError(f"Tree covers {len(tree)} tokens, sentence has {len(instance)}")

    root_index = len(instance) - 1
    parents = tree.get_parents()
    labels = tree.get_arc_labels() if tree.labeled else None

    tokens = []
    for i in range(root_index):
        source = instance.tokens[i] if instance.tokens else {}
        parent = parents[i]
        tokens.append({
            'id': i + 1,
            'form': instance.forms[i],
            'lemma': source.get('lemma', '_'),
            'upos': instance.pos_tags[i],
            'xpos': source.get('xpos', '_'),
            'feats': source.get('feats'),
            'head': 0 if parent in (root_index, -1) else parent + 1,
            'deprel': labels[i] if labels is not None else '_',
            'deps': None,
            'misc': None,
        })
    return TokenList(tokens)


def write_conllu(path: Path, instances: Sequence[Instance], trees: Sequence[ParseTree]) -> None:
    if len(instances) != len(trees):
        raise ValueError(f"Got {len(trees)} trees for {len(instances)} sentences")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for instance, tree in zip(instances, trees):
            f.write(tree_to_tokenlist(instance, tree).serialize())
    data_logger.info(f"Wrote {len(trees)} parsed sentences to {path}")
