"""Physical storage media for memory backends.

    volatile:  process-local maps, lost on exit
    persisted: cross-session key-value state, optionally per git branch
    encrypted: encrypted secrets plus a metadata index
    disk:      a real directory tree
"""

from memfiles.substrates.base import Kind, Meta, Substrate
from memfiles.substrates.disk import DiskSubstrate
from memfiles.substrates.encrypted import EncryptedSubstrate
from memfiles.substrates.persisted import PersistedSubstrate, branch_key, detect_branch
from memfiles.substrates.volatile import VolatileSubstrate

__all__ = [
    "Kind",
    "Meta",
    "Substrate",
    "DiskSubstrate",
    "EncryptedSubstrate",
    "PersistedSubstrate",
    "VolatileSubstrate",
    "branch_key",
    "detect_branch",
]
