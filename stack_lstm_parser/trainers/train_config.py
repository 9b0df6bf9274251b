from typing import Any, Dict, Optional

from dataclasses import dataclass, fields


@dataclass
class TrainConfig:
    # Data
    train_file: Optional[str] = None
    dev_file: Optional[str] = None
    pretrained_file: Optional[str] = None
    lowercase: bool = False

    # Training hyperparameters
    num_epochs: int = 30
    optimizer: str = 'sgd'     # sgd, adam
    lr: float = 0.1
    eta_decay: float = 0.08    # sgd only: lr / (1 + eta_decay * epoch)
    weight_decay: float = 0.0
    clip_grad: float = 5.0
    unk_prob: float = 0.2
    seed: int = 42

    # Logging cadence, in sentences (0 disables the mid-epoch evaluation)
    status_every: int = 100
    eval_every: int = 0

    # Paths
    save_dir: str = 'checkpoints'
    results_dir: str = 'results'
    model_name: str = 'best_model.pt'
    compress: bool = False

    # Device
    device: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any], **overrides) -> 'TrainConfig':
        """Build from the ``training`` and ``paths`` sections of the YAML config"""
        names = {f.name for f in fields(cls)}
        values = {}
        for section in ('training', 'paths'):
            for key, value in (config.get(section) or {}).items():
                if key in names:
                    values[key] = value
        if 'device' in config:
            values['device'] = config['device']
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
