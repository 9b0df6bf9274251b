import os
import torch
from pathlib import Path

import yaml


def get_root_path():
    return Path(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


ROOT_PATH = get_root_path()

# Config path
CONFIG_PATH = ROOT_PATH / "configs"
CONFIG_FILE = CONFIG_PATH / "config.yaml"

# Load config
with open(CONFIG_FILE, "r", encoding="utf-8") as f:
    config = yaml.safe_load(f)

# Output paths are relative to the working directory, not the installed package
LOG_PATH = Path(config['paths']['log_dir'])
RESULTS_PATH = Path(config['paths']['results_dir'])
CHECKPOINTS_PATH = Path(config['paths']['save_dir'])

# Special symbols
UNK_SYMBOL = '<UNK>'
ROOT_SYMBOL = 'ROOT'
SHIFT_ACTION = 'SHIFT'
DEFAULT_ARC_LABEL = 'ERROR'


def get_device():
    if config['device'] is None:
        return 'cuda' if torch.cuda.is_available() else 'cpu'
    return config['device']
