"""
Flag snapshot builder.

Evaluates every served flag against a provider and groups the results by
category, e.g. {"user": {"metadata": True}}.
"""

import json
from typing import Dict

from flagserver.errors import SnapshotSerializationError
from flagserver.features.flags import Feature
from flagserver.features.protocol import FlagProvider

FlagSnapshot = Dict[str, Dict[str, bool]]

# Indentation used for the JSON body
SNAPSHOT_INDENT = 4


def build_snapshot(provider: FlagProvider) -> FlagSnapshot:
    """
    Evaluate all flags once and return a fresh snapshot.

    Args:
        provider: The flag provider to query

    Returns:
        Mapping of category -> flag key -> enabled state
    """
    snapshot: FlagSnapshot = {}
    for feature in Feature:
        snapshot.setdefault(feature.category, {})[feature.key] = bool(
            provider.is_enabled(feature.value)
        )
    return snapshot


def serialize_snapshot(snapshot: FlagSnapshot) -> str:
    """
    Encode a snapshot as indented JSON with stable key ordering.

    Raises:
        SnapshotSerializationError: If the snapshot is not JSON encodable
    """
    try:
        return json.dumps(snapshot, indent=SNAPSHOT_INDENT, sort_keys=True)
    except (TypeError, ValueError) as e:
        raise SnapshotSerializationError(str(e)) from e
