"""Consensus buffers, their stores, and the learner that builds them."""

from .learner import DEFAULT_CHUNK_SIZE, Learner, LearnOutcome, LearnReport
from .models import ConsensusBuffer, ConsensusEntry, ConsensusMeta, Orientation
from .store import (
    DEFAULT_LEARNS_DIRNAME,
    ConsensusStore,
    FileConsensusStore,
    MemoryConsensusStore,
)

__all__ = [
    "ConsensusBuffer",
    "ConsensusEntry",
    "ConsensusMeta",
    "ConsensusStore",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_LEARNS_DIRNAME",
    "FileConsensusStore",
    "Learner",
    "LearnOutcome",
    "LearnReport",
    "MemoryConsensusStore",
    "Orientation",
]
