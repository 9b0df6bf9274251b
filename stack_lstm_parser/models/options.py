from dataclasses import asdict, dataclass, fields
from enum import IntEnum
from typing import Any, Dict


class UnkStrategy(IntEnum):
    NONE = 0          # Words are never replaced during training
    SINGLETONS = 1    # Training singletons become UNK with probability unk_prob
    ALL = 2           # Any word becomes UNK with probability unk_prob


@dataclass(frozen=True)
class ParserOptions:
    """Architecture of a parser. Two parsers can share weights only if their options are equal."""
    use_pos: bool = True
    layers: int = 2
    input_dim: int = 32
    hidden_dim: int = 100
    action_dim: int = 16
    lstm_input_dim: int = 100
    pos_dim: int = 12
    rel_dim: int = 10
    unk_strategy: UnkStrategy = UnkStrategy.SINGLETONS

    def __post_init__(self):
        # Accept plain ints from YAML or checkpoints
        object.__setattr__(self, 'unk_strategy', UnkStrategy(self.unk_strategy))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['unk_strategy'] = int(self.unk_strategy)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParserOptions':
        names = {f.name for f in fields(cls)}
        unknown = set(data) - names
        if unknown:
            raise ValueError(f"Unknown parser options: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ParserOptions':
        return cls.from_dict(dict(config['model']))
