from .vocabulary import Vocabulary
from .pretrained import PretrainedEmbeddings, load_pretrained
from .dependency import Instance
from .loader import CoNLLUDataset, build_training_data, encode_instances, to_internal_heads
from .writer import write_conllu, tree_to_tokenlist

__all__ = [
    'Vocabulary', 'PretrainedEmbeddings', 'load_pretrained', 'Instance',
    'CoNLLUDataset', 'build_training_data', 'encode_instances', 'to_internal_heads',
    'write_conllu', 'tree_to_tokenlist',
]
