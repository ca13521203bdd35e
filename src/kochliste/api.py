"""
HTTP API for the cooking lists.
Serves the web UI and exposes the recipe catalog, the to-cook list and the
to-buy list under /api.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, configure_logging, create_store
from .models import Occurrence, Recipe
from .service import CookingService
from .storage import BlobStore

logger = logging.getLogger(__name__)

IMAGE_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


# --- Request bodies ---


class ManualItem(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    rezeptId: Optional[int] = None
    rezeptName: Optional[str] = None


class RenameRequest(BaseModel):
    newName: Optional[str] = None


# --- Error bodies: {"error": message} ---


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.info("rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse({"error": message, "details": jsonable_encoder(errors)}, status_code=400)


async def _server_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Server Error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": str(exc)}, status_code=500)


def get_service(request: Request) -> CookingService:
    return request.app.state.service


def create_app(settings: Optional[Settings] = None, store: Optional[BlobStore] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service = CookingService(store or create_store(settings), settings)
        await service.init()
        app.state.service = service
        logger.info("Using %s storage", service.store.name)
        yield

    app = FastAPI(title="Kochliste API", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _server_error)

    static_dir = Path(settings.static_dir)

    # --- Frontend ---

    @app.get("/")
    @app.get("/index.html")
    async def index():
        """Serve the web UI."""
        index_path = static_dir / "index.html"
        if not index_path.is_file():
            raise HTTPException(status_code=404, detail="Frontend not found. Create index.html")
        return FileResponse(index_path, media_type="text/html")

    @app.get("/images/{filename:path}")
    async def image(filename: str):
        # only the last path segment counts, no way out of images/
        image_path = static_dir / "images" / Path(filename).name
        if not image_path.is_file():
            raise HTTPException(status_code=404, detail="Image not found")
        media_type = IMAGE_TYPES.get(image_path.suffix.lower(), "application/octet-stream")
        return FileResponse(image_path, media_type=media_type)

    @app.get("/health")
    async def health(service: CookingService = Depends(get_service)):
        return {"status": "ok", "storage": service.store.name}

    # --- Recipes ---

    @app.get("/api/rezepte")
    async def list_recipes(service: CookingService = Depends(get_service)):
        return [r.model_dump(exclude_none=True) for r in await service.list_recipes()]

    # --- To cook ---

    @app.get("/api/to-be-cooked")
    async def list_to_cook(service: CookingService = Depends(get_service)):
        return [r.model_dump(exclude_none=True) for r in await service.list_to_cook()]

    @app.post("/api/to-be-cooked")
    async def add_to_cook(recipe: Recipe, service: CookingService = Depends(get_service)):
        """Put a recipe on the to-cook list and its ingredients on the to-buy list."""
        await service.add_to_cook(recipe)
        return {"success": True}

    @app.delete("/api/to-be-cooked/{rezept_id}")
    async def remove_from_cook(rezept_id: int, service: CookingService = Depends(get_service)):
        """Take a recipe off the to-cook list.

        alreadyBoughtIngredients lists the recipe's ingredients that were not
        on the to-buy list any more.
        """
        already_bought = await service.remove_from_cook(rezept_id)
        return {
            "success": True,
            "alreadyBoughtIngredients": [z.model_dump() for z in already_bought],
        }

    # --- To buy ---

    @app.get("/api/to-be-bought")
    async def list_to_buy(service: CookingService = Depends(get_service)):
        return [z.model_dump() for z in await service.list_to_buy()]

    @app.post("/api/to-be-bought")
    async def add_to_buy(item: ManualItem, service: CookingService = Depends(get_service)):
        await service.add_to_buy(Occurrence(**item.model_dump()))
        return {"success": True}

    @app.delete("/api/to-be-bought/{index}")
    async def remove_from_buy(index: int, service: CookingService = Depends(get_service)):
        await service.remove_from_buy(index)
        return {"success": True}

    @app.put("/api/to-be-bought/{index}")
    async def rename_to_buy(
        index: int,
        body: RenameRequest,
        service: CookingService = Depends(get_service),
    ):
        await service.rename_to_buy(index, body.newName)
        return {"success": True}

    return app


def main() -> None:
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
