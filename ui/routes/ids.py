"""Identifier generation and decoding routes."""

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from core.errors import FormatError
from identifiers.ksuid import Ksuid
from identifiers.tsid import Tsid
from identifiers.ulid import Ulid
from internal.logging import get_logger

router = APIRouter(prefix="/api/v1/ids", tags=["ids"])

MAX_BATCH = 1000

_TYPES = {"tsid": Tsid, "ulid": Ulid, "ksuid": Ksuid}

# These will be set by app.py
_generators = {}


def init(generators):
    """Initialize with the per-format generators."""
    global _generators
    _generators = generators


def _generator(kind):
    generator = _generators.get(kind)
    if generator is None:
        raise HTTPException(status_code=404, detail=f"Unknown identifier kind: {kind}")
    return generator


def _render(identifier, lowercase):
    # KSUID's base62 alphabet is case-significant
    if lowercase and not isinstance(identifier, Ksuid):
        return identifier.to_string(lowercase=True)
    return str(identifier)


def _instant(identifier):
    # 48-bit ULID times run past datetime's year 9999
    try:
        return identifier.instant.isoformat()
    except (OverflowError, OSError, ValueError):
        return None


@router.post("/{kind}")
async def generate(kind: str, count: int = Query(1, ge=1, le=MAX_BATCH), lowercase: bool = False):
    """Generate ``count`` identifiers, in order for monotonic generators."""
    generator = _generator(kind)
    return {"kind": kind, "ids": [_render(generator.generate(), lowercase) for _ in range(count)]}


@router.get("/{kind}/{value}")
async def decompose(kind: str, value: str):
    """Decode an identifier into its time and random components."""
    generator = _generator(kind)
    try:
        identifier = _TYPES[kind].parse(value)
    except FormatError as exc:
        get_logger().debug("Rejected identifier", kind=kind, error_id=exc.error_id)
        return JSONResponse(content=exc.to_dict(), status_code=422)

    result = {
        "kind": kind,
        "value": str(identifier),
        "time": identifier.time_component,
        "timestamp": identifier.timestamp,
        "instant": _instant(identifier),
        "random": identifier.random_component,
        "hex": identifier.hex(),
    }
    if generator.layout.node_bits:
        result["node"] = generator.layout.extract_node(identifier.number)
    return result
