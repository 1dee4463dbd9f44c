import json
import logging
import os
import sys
from typing import Any, Callable, Optional

from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from src.common.auth import extract_api_key, is_authorized
from src.common.models import ErrorResponse, LoadResponse, NotFoundResponse, SaveResponse
from src.sync.stores import SyncError, SyncStore, store_from_env, stored_timestamp

logging.basicConfig(
    level=logging.INFO,
    format="[SyncServer] %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

mcp = FastMCP("Bardbook Sync Server")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

# Global store (initialized on first use)
_store: Optional[SyncStore] = None


def get_store() -> SyncStore:
    """Get or create the sync store from environment configuration."""
    global _store
    if _store is None:
        _store = store_from_env()
    return _store


def save_payload(store: SyncStore, data: Any) -> dict:
    """Persist data and build the success envelope. Raises SyncError."""
    timestamp = store.save(data)
    return SaveResponse(timestamp=timestamp).model_dump()


def load_payload(store: SyncStore) -> dict:
    """Build the load envelope. Raises SyncError."""
    data = store.load()
    if data is None:
        return NotFoundResponse().model_dump()
    return LoadResponse(data=data, timestamp=stored_timestamp(data)).model_dump()


def handle_sync_request(
    store_factory: Callable[[], SyncStore],
    action: str,
    method: str,
    body: Optional[dict],
    empty_body: bool = False,
) -> tuple[int, dict]:
    """
    Dispatch one sync request.

    Args:
        store_factory: Returns the backend; called inside the error handler
        action: "save" or "load"
        method: HTTP method of the request
        body: Parsed JSON body (None when absent or not JSON)
        empty_body: True when the request carried no body at all

    Returns:
        HTTP status code and JSON envelope
    """
    logger.info(f"Request method = {method}, action = {action or '(none)'}")

    try:
        if action == "save":
            if method != "POST":
                raise SyncError("POST method required for save action")
            if empty_body:
                raise SyncError("Empty request body")
            if body is None:
                raise SyncError("Invalid JSON format")
            if "data" not in body:
                logger.info("Missing data field in request")
                raise SyncError('Invalid data format: missing "data" field')
            return 200, save_payload(store_factory(), body["data"])

        if action == "load":
            return 200, load_payload(store_factory())

        raise SyncError("Invalid action")
    except SyncError as e:
        logger.error(f"Sync {action or 'request'} failed: {e}")
        return 400, ErrorResponse(error=str(e)).model_dump()


async def _read_json_body(request: Request) -> tuple[bool, Optional[dict]]:
    """Whether the body was empty, and the parsed JSON object if any."""
    raw = await request.body()
    logger.info(f"Raw input length = {len(raw)}")
    if not raw:
        return True, None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.info(f"JSON decode error = {e.msg}")
        return False, None
    return False, (parsed if isinstance(parsed, dict) else None)


@mcp.custom_route("/api/sync", methods=["GET", "POST", "OPTIONS"])
async def sync_endpoint(request: Request) -> Response:
    """HTTP save/load endpoint used by the web client."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    empty_body, body = True, None
    if request.method == "POST":
        empty_body, body = await _read_json_body(request)

    provided_key = extract_api_key(
        request.query_params, body, request.headers.get("authorization")
    )
    if not is_authorized(os.environ.get("BARDBOOK_API_KEY"), provided_key):
        error = ErrorResponse(error="Unauthorized: Invalid or missing API key")
        return JSONResponse(error.model_dump(), status_code=401, headers=CORS_HEADERS)

    action = request.query_params.get("action") or ""
    if not action and body and isinstance(body.get("action"), str):
        action = body["action"]

    status, payload = handle_sync_request(
        get_store, action, request.method, body, empty_body
    )
    return JSONResponse(payload, status_code=status, headers=CORS_HEADERS)


@mcp.tool()
def save_data(data: dict) -> str:
    """
    Save the user's bardbook data on the server.

    Args:
        data: Data object (favorites, userItems, history, ...)

    Returns:
        JSON object with success flag, message and server timestamp
    """
    try:
        payload = save_payload(get_store(), data)
    except SyncError as e:
        payload = ErrorResponse(error=str(e)).model_dump()
    return json.dumps(payload, indent=2)


@mcp.tool()
def load_data() -> str:
    """
    Load the user's saved bardbook data from the server.

    Returns:
        JSON object with the stored data and its timestamp
    """
    try:
        payload = load_payload(get_store())
    except SyncError as e:
        payload = ErrorResponse(error=str(e)).model_dump()
    return json.dumps(payload, indent=2)


def main():
    """Entry point for the sync server (HTTP transport so /api/sync is served)."""
    transport = os.environ.get("BARDBOOK_SYNC_TRANSPORT", "streamable-http")
    mcp.run(transport=transport)


if __name__ == "__main__":
    main()
