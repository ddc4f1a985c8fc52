from identifiers.entropy import SecureRandomSource, SeededRandomSource, SequenceRandomSource
from identifiers.generator import FastGenerator, MonotonicGenerator, RegressionPolicy, TailReset
from identifiers.ksuid import Ksuid, fast_ksuid, generate_ksuid, new_ksuid_generator
from identifiers.layout import BitLayout
from identifiers.tsid import Tsid, fast_tsid, new_tsid_generator
from identifiers.ulid import Ulid, fast_ulid, new_ulid_generator

__all__ = [
    "BitLayout",
    "FastGenerator",
    "Ksuid",
    "MonotonicGenerator",
    "RegressionPolicy",
    "SecureRandomSource",
    "SeededRandomSource",
    "SequenceRandomSource",
    "TailReset",
    "Tsid",
    "Ulid",
    "fast_ksuid",
    "fast_tsid",
    "fast_ulid",
    "generate_ksuid",
    "new_ksuid_generator",
    "new_tsid_generator",
    "new_ulid_generator",
]
