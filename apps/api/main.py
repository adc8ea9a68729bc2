from __future__ import annotations

import hashlib
import hmac
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Literal, Optional
from urllib.parse import parse_qsl

from fastapi import Depends, FastAPI, File, Header, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from libs.core import (
    AuthError,
    DomainError,
    Entry,
    EntryFilters,
    FetchError,
    ForbiddenError,
    GatewayError,
    ImageMetadata,
    NotFoundError,
    Settings,
    ValidationError,
    check_startup,
    get_settings,
)
from libs.core.models import CamelModel, EntryType, Sentiment
from libs.db import Database, EntryRepo, UserRepo, models
from libs.enrichment import Enrichment
from libs.fetch import ContentFetcher
from libs.llm import ChatCompletionGateway
from libs.logging import setup_logging
from libs.storage import BlobStorage
from libs.usecases import (
    CaptureEntry,
    EntryDraft,
    ExportHistory,
    SearchEntries,
    SummarizeLink,
)

logger = logging.getLogger(__name__)

SEARCH_DEFAULT_LIMIT = 20

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    FetchError: status.HTTP_502_BAD_GATEWAY,
    GatewayError: status.HTTP_502_BAD_GATEWAY,
}


# ---------------------------------------------------------------------------
# Application lifecycle


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(settings)
    check_startup(settings)
    logger.info("startup_check_passed", extra={"environment": settings.environment})

    db = Database(settings.postgres_uri)
    await db.init()
    gateway = ChatCompletionGateway(settings)

    app.state.settings = settings
    app.state.db = db
    app.state.enrichment = Enrichment(
        gateway, settings.ai_text_model, settings.ai_vision_model
    )
    app.state.fetcher = ContentFetcher(timeout=settings.fetch_timeout)
    app.state.storage = BlobStorage(settings.vault_dir, settings.public_url)
    try:
        yield
    finally:
        await db.dispose()


app = FastAPI(title="Visper API", lifespan=lifespan)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if code >= 500 and code != status.HTTP_502_BAD_GATEWAY:
        logger.error("request_failed", exc_info=exc, extra={"path": request.url.path})
    body: Dict[str, Any] = {"error": str(exc)}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(status_code=code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    body: Dict[str, Any] = {"error": first.get("msg", "Invalid request")}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    if loc:
        body["field"] = ".".join(loc)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


# ---------------------------------------------------------------------------
# Dependency factories


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_enrichment(request: Request) -> Enrichment:
    return request.app.state.enrichment


def get_fetcher(request: Request) -> ContentFetcher:
    return request.app.state.fetcher


def get_storage(request: Request) -> BlobStorage:
    return request.app.state.storage


async def db_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.db.session() as session:
        yield session


def get_entry_repo(session: AsyncSession = Depends(db_session)) -> EntryRepo:
    return EntryRepo(session)


def verify_init_data(raw: str, bot_token: str) -> Dict[str, str]:
    """Check the Telegram WebApp signature and return the signed fields."""
    data = dict(parse_qsl(raw))
    received_hash = data.pop("hash", None)
    if not received_hash:
        raise AuthError("Invalid initData")

    check_string = "\n".join(f"{k}={v}" for k, v in sorted(data.items()))
    secret_key = hmac.new(
        key=b"WebAppData",
        msg=bot_token.encode(),
        digestmod=hashlib.sha256,
    ).digest()
    calculated = hmac.new(secret_key, check_string.encode(), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(calculated, received_hash):
        raise AuthError("Invalid initData")
    return data


async def current_user(
    init_data: str | None = Header(None, alias="X-Telegram-Init-Data"),
    init_data_q: str | None = Query(None, alias="initData"),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(app_settings),
) -> models.User:
    """Validate Telegram initData and return associated user."""
    raw = init_data or init_data_q
    if not raw:
        raise AuthError("Missing initData")

    data = verify_init_data(raw, settings.telegram_bot_token)
    try:
        telegram_id = int(json.loads(data["user"])["id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthError("Invalid initData") from exc

    repo = UserRepo(session)
    user = await repo.get_by_telegram(telegram_id)
    if not user:
        user = await repo.create(telegram_id)
    return user


# Factory dependencies for use cases -------------------------------------------------


def capture_uc(
    enrichment: Enrichment = Depends(get_enrichment),
    fetcher: ContentFetcher = Depends(get_fetcher),
    repo: EntryRepo = Depends(get_entry_repo),
) -> CaptureEntry:
    return CaptureEntry(enrichment, fetcher, repo)


def summarize_uc(
    fetcher: ContentFetcher = Depends(get_fetcher),
    enrichment: Enrichment = Depends(get_enrichment),
) -> SummarizeLink:
    return SummarizeLink(fetcher, enrichment)


def search_uc(repo: EntryRepo = Depends(get_entry_repo)) -> SearchEntries:
    return SearchEntries(repo)


def export_uc(
    repo: EntryRepo = Depends(get_entry_repo),
    settings: Settings = Depends(app_settings),
) -> ExportHistory:
    return ExportHistory(
        repo,
        product_name=settings.product_name,
        max_entries=settings.export_max_entries,
    )


def list_filters(
    type: Optional[EntryType] = Query(None),
    tag: Optional[str] = Query(None),
    sentiment: Optional[Sentiment] = Query(None),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    limit: int = Query(50, ge=1, le=1000),
) -> EntryFilters:
    return EntryFilters(
        type=type,
        tag=tag,
        sentiment=sentiment,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )


def search_filters(
    type: Optional[EntryType] = Query(None),
    tag: Optional[str] = Query(None),
    sentiment: Optional[Sentiment] = Query(None),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    top_k: Optional[int] = Query(None, alias="topK", ge=1, le=1000),
) -> EntryFilters:
    """Same filters as the list route; the cap also accepts ``topK``."""
    return list_filters(
        type=type,
        tag=tag,
        sentiment=sentiment,
        date_from=date_from,
        date_to=date_to,
        limit=limit or top_k or SEARCH_DEFAULT_LIMIT,
    )


# ---------------------------------------------------------------------------
# Request schemas


class ImproveRequest(CamelModel):
    raw_text: str = ""


class MetadataRequest(CamelModel):
    type: Literal["text", "image"] = "text"
    text: Optional[str] = None
    image_url: Optional[str] = None


class SummarizeRequest(CamelModel):
    url: str = ""


class CreateEntryRequest(EntryDraft):
    enrich: bool = False


def _entry_json(entry: Entry) -> Dict[str, Any]:
    return entry.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Routes


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/entries/improve")
def improve_entry(
    req: ImproveRequest,
    enrichment: Enrichment = Depends(get_enrichment),
    user: models.User = Depends(current_user),
) -> Dict[str, Any]:
    result = enrichment.improve(req.raw_text)
    return result.model_dump(mode="json", by_alias=True)


@app.post("/entries/metadata")
def entry_metadata(
    req: MetadataRequest,
    enrichment: Enrichment = Depends(get_enrichment),
    user: models.User = Depends(current_user),
) -> Dict[str, Any]:
    if req.type == "image":
        if not req.image_url:
            raise ValidationError("imageUrl is required for image metadata", field="imageUrl")
        metadata = enrichment.image_metadata(req.image_url)
    else:
        if not req.text:
            raise ValidationError("text is required for text metadata", field="text")
        metadata = enrichment.text_metadata(req.text)
    return {"metadata": metadata.model_dump(mode="json", by_alias=True)}


@app.post("/urls/summarize")
async def summarize_url(
    req: SummarizeRequest,
    uc: SummarizeLink = Depends(summarize_uc),
    user: models.User = Depends(current_user),
) -> Dict[str, Any]:
    scraped, summary, fetched_at = await uc(req.url)
    result = summary.model_dump(mode="json", by_alias=True)
    result["meta"] = {
        "title": scraped.title,
        "domain": scraped.domain,
        "author": scraped.author,
        "checksum": scraped.checksum,
        "fetchedAt": fetched_at.isoformat(),
    }
    return result


@app.post("/upload")
async def upload_image(
    file: UploadFile = File(...),
    storage: BlobStorage = Depends(get_storage),
    settings: Settings = Depends(app_settings),
    user: models.User = Depends(current_user),
) -> Dict[str, Any]:
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise ValidationError("Only image uploads are supported", field="file")
    data = await file.read()
    if not data:
        raise ValidationError("Uploaded file is empty", field="file")
    if len(data) > settings.max_upload_bytes:
        raise ValidationError(
            f"File exceeds {settings.max_upload_bytes} bytes", field="file"
        )

    blob = storage.save(user.id, data, content_type, file.filename or "")
    metadata = ImageMetadata(
        filename=file.filename or blob.storage_path.rsplit("/", 1)[-1],
        size=len(data),
        content_type=content_type,
    )
    return {
        "url": blob.url,
        "storagePath": blob.storage_path,
        "metadata": metadata.model_dump(mode="json", by_alias=True, exclude_none=True),
    }


@app.get("/media/{storage_path:path}")
def media(
    storage_path: str,
    storage: BlobStorage = Depends(get_storage),
) -> FileResponse:
    return FileResponse(storage.open(storage_path))


@app.post("/entries", status_code=status.HTTP_201_CREATED)
async def create_entry(
    req: CreateEntryRequest,
    uc: CaptureEntry = Depends(capture_uc),
    user: models.User = Depends(current_user),
) -> Dict[str, Any]:
    draft = EntryDraft.model_validate(req.model_dump(exclude={"enrich"}))
    entry = await uc(user.id, draft, enrich=req.enrich)
    return {"id": entry.id, "entry": _entry_json(entry)}


@app.get("/entries")
async def list_entries(
    filters: EntryFilters = Depends(list_filters),
    repo: EntryRepo = Depends(get_entry_repo),
    user: models.User = Depends(current_user),
) -> Dict[str, Any]:
    entries = await repo.list_by_owner(user.id, filters)
    return {"entries": [_entry_json(e) for e in entries], "total": len(entries)}


@app.get("/entries/export")
async def export_entries(
    include_images: bool = Query(True, alias="includeImages"),
    uc: ExportHistory = Depends(export_uc),
    user: models.User = Depends(current_user),
) -> Response:
    document = await uc(user.id, include_images=include_images)
    return Response(
        content=document.html,
        media_type="text/html; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{document.filename}"',
            "Cache-Control": "no-store",
        },
    )


@app.get("/entries/{entry_id}")
async def get_entry(
    entry_id: str,
    repo: EntryRepo = Depends(get_entry_repo),
    user: models.User = Depends(current_user),
) -> Dict[str, Any]:
    entry = await repo.get_owned(entry_id, user.id)
    return _entry_json(entry)


@app.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: str,
    repo: EntryRepo = Depends(get_entry_repo),
    user: models.User = Depends(current_user),
) -> Response:
    await repo.delete(entry_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/search")
async def search(
    q: Optional[str] = Query(None),
    semantic: bool = Query(False),
    filters: EntryFilters = Depends(search_filters),
    uc: SearchEntries = Depends(search_uc),
    user: models.User = Depends(current_user),
) -> Dict[str, Any]:
    entries = await uc(user.id, filters, q=q, semantic=semantic)
    return {"entries": [_entry_json(e) for e in entries], "total": len(entries)}


__all__ = ["app"]
