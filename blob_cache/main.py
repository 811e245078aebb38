from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect

from blob_cache.app.errors import BlobNotFoundError, InvalidHashError, StorageIOError
from blob_cache.app.services.storage_manager import StorageManager
from blob_cache.config import ServerConfig
from blob_cache.logger_config import get_logger, setup_logger

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await app.state.storage_manager.initialize()
    yield


def create_app(config: ServerConfig) -> FastAPI:
    """Build the FastAPI app serving the cache and asset roots of `config`."""
    app = FastAPI(title="Blob Cache Server", lifespan=lifespan)
    app.state.config = config
    app.state.storage_manager = StorageManager(config)

    app.add_api_route("/cache/{hash_token}", get_blob, methods=["GET"])
    app.add_api_route("/cache/{hash_token}", head_blob, methods=["HEAD"])
    app.add_api_route("/cache/{hash_token}", put_blob, methods=["PUT"])
    app.add_api_route("/asset/{name}", put_asset, methods=["PUT"])
    app.add_api_route("/status", status, methods=["GET"], response_class=PlainTextResponse)
    return app


async def get_blob(hash_token: str, request: Request):
    """Stream a stored binary back to the client."""
    storage_manager: StorageManager = request.app.state.storage_manager
    logger.debug(f"Receiving download request for hash: {hash_token}")

    try:
        reader = await storage_manager.fetch(hash_token)
    except InvalidHashError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BlobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageIOError as e:
        logger.error(f"Error opening blob {hash_token}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return StreamingResponse(
        reader,
        media_type="application/octet-stream",
        headers={"content-length": str(reader.size)},
        background=BackgroundTask(reader.aclose)
    )


async def head_blob(hash_token: str, request: Request):
    """Report whether a binary is stored, without a body."""
    storage_manager: StorageManager = request.app.state.storage_manager

    try:
        found = await storage_manager.exists(hash_token)
    except InvalidHashError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not found:
        raise HTTPException(status_code=404, detail=f"{hash_token} does not exist")
    return Response(status_code=200)


async def put_blob(hash_token: str, request: Request):
    """Store the request body as a binary, replacing any previous object atomically."""
    storage_manager: StorageManager = request.app.state.storage_manager
    logger.debug(f"Receiving upload request for hash: {hash_token}")

    try:
        await storage_manager.store_binary(hash_token, request.stream())
    except InvalidHashError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageIOError as e:
        logger.error(f"Error uploading blob {hash_token}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    except ClientDisconnect:
        logger.warning(f"Client disconnected while uploading {hash_token}; nothing stored")
        raise HTTPException(status_code=400, detail="Client disconnected during upload")

    return Response(status_code=200)


async def put_asset(name: str, request: Request):
    """Store the request body as a named asset. The write is not atomic."""
    storage_manager: StorageManager = request.app.state.storage_manager
    logger.debug(f"Receiving asset upload request for: {name}")

    try:
        await storage_manager.store_asset(name, request.stream())
    except StorageIOError as e:
        logger.error(f"Error uploading asset {name}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    except ClientDisconnect:
        # The client is gone and never reads this status; it only reaches the access log.
        # Same answer as the binary route.
        logger.warning(f"Client disconnected while uploading asset {name}; file may be partial")
        raise HTTPException(status_code=400, detail="Client disconnected during upload")

    return Response(status_code=200)


async def status():
    return "online"


def main(argv: Optional[List[str]] = None):
    config = ServerConfig.from_args(argv)
    setup_logger(config.log_level, config.log_dir)

    logger.info("Starting Blob Cache Server...")
    logger.info(f"Listening on {config.host}:{config.port}")
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
