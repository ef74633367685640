import hashlib
import json
import re
from typing import Any, Mapping, Optional, Pattern

DELIMITER = ":"


def fingerprint(params: Mapping[str, Any]) -> str:
    """
    Stable digest of query parameters, independent of their order. Values that are
    not JSON serializable are represented by their repr.
    """
    raw = json.dumps(params, sort_keys=True, default=repr, separators=(",", ":"))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


def cache_key(
    entity: str,
    owner: str,
    *parts: Any,
    params: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Build a key such as ``invoices:42:list:3f1c9a0b7d2e4f61``.

    :param entity: entity type, e.g. "invoices".
    :param owner: owner or tenant id.
    :param parts: extra segments, e.g. an entity id.
    :param params: query parameters, appended as a fingerprint.
    """
    segments = [entity, str(owner)]
    segments.extend(str(p) for p in parts)
    if params:
        segments.append(fingerprint(params))
    return DELIMITER.join(segments)


def owner_pattern(entity: str, owner: str) -> Pattern[str]:
    """
    Regular expression matching every key built by cache_key for entity and owner,
    pass it to invalidate_pattern to drop all cached variants at once. Owner "4"
    never matches keys of owner "42".
    """
    return re.compile(
        "^" + re.escape(entity + DELIMITER + str(owner)) + f"(?:{re.escape(DELIMITER)}|$)"
    )
