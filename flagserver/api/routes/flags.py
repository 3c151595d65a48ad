"""
Flag snapshot route.

Serves the evaluated flags as indented JSON on the root path for every
HTTP method, including CONNECT and extension methods.
"""
import logging
from http import HTTPStatus
from typing import Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response
from fastapi.routing import APIRoute
from starlette.routing import Match
from starlette.types import Scope

from flagserver.api.dependencies import get_flag_provider
from flagserver.errors import SnapshotSerializationError
from flagserver.features import FlagProvider, build_snapshot, serialize_snapshot

logger = logging.getLogger(__name__)

SNAPSHOT_MEDIA_TYPE = "Application/JSON"


class AnyMethodRoute(APIRoute):
    """APIRoute that matches its path whatever the request method is."""

    def matches(self, scope: Scope) -> Tuple[Match, Scope]:
        match, child_scope = super().matches(scope)
        # PARTIAL means the path matched but the method did not
        if match is Match.PARTIAL:
            match = Match.FULL
        return match, child_scope


router = APIRouter(tags=["flags"], route_class=AnyMethodRoute)


@router.api_route("/", include_in_schema=False)
def get_flags(provider: FlagProvider = Depends(get_flag_provider)) -> Response:
    """
    Evaluate every served flag and return the snapshot.

    Declared sync so provider calls run in the threadpool and never block
    the event loop.
    """
    try:
        content = serialize_snapshot(build_snapshot(provider))
    except SnapshotSerializationError as e:
        logger.error(e.message)
        status = HTTPStatus.INTERNAL_SERVER_ERROR
        return PlainTextResponse(status.phrase, status_code=status.value)

    return Response(content=content, status_code=HTTPStatus.OK.value, media_type=SNAPSHOT_MEDIA_TYPE)
