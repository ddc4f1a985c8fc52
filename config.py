import json
import os
from datetime import datetime
from pathlib import Path

from core.errors import ConfigurationError
from identifiers.layout import MAX_NODE_BITS
from identifiers.ksuid import KSUID_CLOCK_DRIFT_TOLERANCE
from identifiers.tsid import NODE_COUNT_ENV, NODE_ENV, TSID_CLOCK_DRIFT_TOLERANCE, TSID_EPOCH, env_int
from identifiers.ulid import ULID_CLOCK_DRIFT_TOLERANCE
from internal.logging import LogLevel

_DEFAULT_CONFIG = Path(__file__).parent / "config.json"

_REGRESSION_POLICIES = ("stall", "advance")


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _check_tolerance(value):
    if not _is_int(value) or value < 0:
        raise ConfigurationError(f"drift_tolerance must be a non-negative int: {value!r}",
                                 setting="drift_tolerance")
    return value


def _check_policy(value):
    if value not in _REGRESSION_POLICIES:
        raise ConfigurationError(f"regression_policy must be one of {_REGRESSION_POLICIES}: {value!r}",
                                 setting="regression_policy")
    return value


class TsidConfig:
    __slots__ = ("node", "node_bits", "node_count", "epoch", "drift_tolerance", "regression_policy")

    def __init__(self, node=None, node_bits=None, node_count=None, epoch=TSID_EPOCH,
                 drift_tolerance=TSID_CLOCK_DRIFT_TOLERANCE, regression_policy="stall"):
        if node_bits is not None and (not _is_int(node_bits) or not 0 <= node_bits <= MAX_NODE_BITS):
            raise ConfigurationError(f"Node bits out of range [0, {MAX_NODE_BITS}]: {node_bits}",
                                     setting="tsid.node_bits")
        if node_count is not None and (not _is_int(node_count) or node_count < 1):
            raise ConfigurationError(f"Node count must be a positive int: {node_count!r}", setting="tsid.node_count")
        if node is not None and not _is_int(node):
            raise ConfigurationError(f"Node must be an int: {node!r}", setting="tsid.node")
        if not (_is_int(epoch) or isinstance(epoch, datetime)):
            raise ConfigurationError(f"Epoch must be Unix milliseconds or a datetime: {epoch!r}",
                                     setting="tsid.epoch")
        self.node = node
        self.node_bits = node_bits
        self.node_count = node_count
        self.epoch = epoch
        self.drift_tolerance = _check_tolerance(drift_tolerance)
        self.regression_policy = _check_policy(regression_policy)


class UlidConfig:
    __slots__ = ("drift_tolerance", "regression_policy")

    def __init__(self, drift_tolerance=ULID_CLOCK_DRIFT_TOLERANCE, regression_policy="stall"):
        self.drift_tolerance = _check_tolerance(drift_tolerance)
        self.regression_policy = _check_policy(regression_policy)


class KsuidConfig:
    __slots__ = ("monotonic", "drift_tolerance", "regression_policy")

    def __init__(self, monotonic=False, drift_tolerance=KSUID_CLOCK_DRIFT_TOLERANCE, regression_policy="stall"):
        self.monotonic = bool(monotonic)
        self.drift_tolerance = _check_tolerance(drift_tolerance)
        self.regression_policy = _check_policy(regression_policy)


class ServerConfig:
    __slots__ = ("host", "port")

    def __init__(self, host="127.0.0.1", port=8080):
        self.host = host
        self.port = port


class LoggingConfig:
    __slots__ = ("level", "crash_file")

    def __init__(self, level="INFO", crash_file="logs/crash.log"):
        if LogLevel.parse(level, default=False) is False:
            raise ConfigurationError(f"Unknown log level: {level!r}", setting="logging.level")
        self.level = level
        self.crash_file = crash_file


class Config:
    __slots__ = ("tsid", "ulid", "ksuid", "server", "logging")

    def __init__(self, tsid=None, ulid=None, ksuid=None, server=None, logging=None):
        self.tsid = tsid or TsidConfig()
        self.ulid = ulid or UlidConfig()
        self.ksuid = ksuid or KsuidConfig()
        self.server = server or ServerConfig()
        self.logging = logging or LoggingConfig()

    @classmethod
    def from_dict(cls, d):
        try:
            return cls(
                TsidConfig(**d.get("tsid", {})),
                UlidConfig(**d.get("ulid", {})),
                KsuidConfig(**d.get("ksuid", {})),
                ServerConfig(**d.get("server", {})),
                LoggingConfig(**d.get("logging", {})),
            )
        except TypeError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", cause=exc) from exc


def _apply_env(d):
    """Environment overrides win over the file."""
    tsid = dict(d.get("tsid", {}))
    node = env_int(NODE_ENV)
    if node is not None:
        tsid["node"] = node
    node_count = env_int(NODE_COUNT_ENV)
    if node_count is not None:
        tsid["node_count"] = node_count
        tsid.pop("node_bits", None)
    level = os.environ.get("IDS_LOG_LEVEL")
    logging = dict(d.get("logging", {}))
    if level:
        logging["level"] = level
    return {**d, "tsid": tsid, "logging": logging}


def load_config(path=None, env=True):
    config_path = Path(path) if path else _DEFAULT_CONFIG

    data = {}
    if config_path.exists():
        with open(config_path) as file:
            data = json.load(file)

    if env:
        data = _apply_env(data)
    return Config.from_dict(data)
