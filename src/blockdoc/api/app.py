"""FastAPI application for the blockdoc document JSON API."""

import logging
import secrets
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, Response, Security
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..adapters.idgen import high_water_mark
from ..core.editor import EditResult, apply_intent, intent_from_dict
from ..errors import BlockdocError, DocumentNotFound

logger = logging.getLogger(__name__)


class BlockPayload(BaseModel):
    """One block as the inline editor sends it."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str = "paragraph"
    content: str = ""
    language: str | None = None


class DocumentCreate(BaseModel):
    title: str = "Untitled"
    content: list[BlockPayload] = Field(default_factory=list)
    userId: int | None = None


class DocumentUpdate(BaseModel):
    title: str | None = None
    content: list[BlockPayload] | None = None


class IntentBatch(BaseModel):
    intents: list[dict[str, Any]]


def _blocks_out(blocks: list[BlockPayload]) -> list[dict[str, Any]]:
    return [b.model_dump(exclude_none=True) for b in blocks]


def _parse_id(document_id: str) -> int:
    try:
        return int(document_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid document ID") from None


def _result_out(result: EditResult) -> dict[str, Any]:
    return {
        "changed": result.changed,
        "focusTarget": result.focus_target,
        "signal": result.signal.value if result.signal else None,
    }


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance with repository and gateway
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Blockdoc API",
        description="JSON API for block-structured documents",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    # Add CORS middleware if enabled
    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid document data", "errors": jsonable_encoder(exc.errors())},
        )

    # Security setup
    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    repo = runtime.repository

    @app.get("/health")  # type: ignore[misc]
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.get("/api/documents")  # type: ignore[misc]
    async def list_documents(
        userId: int | None = Query(None, description="Only documents owned by this user"),
        auth: None = Depends(verify_token),
    ) -> list[dict[str, Any]]:
        return [r.to_dict() for r in repo.list(userId)]

    @app.get("/api/documents/{document_id}")  # type: ignore[misc]
    async def get_document(document_id: str, auth: None = Depends(verify_token)) -> dict[str, Any]:
        record = repo.get(_parse_id(document_id))
        if record is None:
            raise HTTPException(status_code=404, detail="Document not found")
        return record.to_dict()

    @app.post("/api/documents", status_code=201)  # type: ignore[misc]
    async def create_document(
        body: DocumentCreate = Body(...),  # noqa: B008
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        record = repo.create(body.title, _blocks_out(body.content), owner_id=body.userId)
        logger.info("created document %s via API", record.id)
        return record.to_dict()

    @app.patch("/api/documents/{document_id}")  # type: ignore[misc]
    async def update_document(
        document_id: str,
        body: DocumentUpdate = Body(...),  # noqa: B008
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        doc_id = _parse_id(document_id)
        changes: dict[str, Any] = {}
        if body.title is not None:
            changes["title"] = body.title
        if body.content is not None:
            changes["content"] = _blocks_out(body.content)
        record = repo.update(doc_id, changes)
        if record is None:
            raise HTTPException(status_code=404, detail="Document not found")
        return record.to_dict()

    @app.delete("/api/documents/{document_id}", status_code=204)  # type: ignore[misc]
    async def delete_document(document_id: str, auth: None = Depends(verify_token)) -> Response:
        if not repo.delete(_parse_id(document_id)):
            raise HTTPException(status_code=404, detail="Document not found")
        return Response(status_code=204)

    @app.post("/api/documents/{document_id}/intents")  # type: ignore[misc]
    async def apply_intents(
        document_id: str,
        body: IntentBatch = Body(...),  # noqa: B008
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Run editing intents through the block list editor and save the result."""
        doc_id = _parse_id(document_id)
        try:
            intents = [intent_from_dict(i) for i in body.intents]
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from None

        try:
            document = runtime.gateway.open(doc_id)
        except DocumentNotFound:
            raise HTTPException(status_code=404, detail="Document not found") from None

        idgen = runtime.new_idgen([b.id for b in document.blocks], document.next_block_id)
        blocks = document.blocks
        results = []
        for intent in intents:
            result = apply_intent(blocks, intent, idgen)
            blocks = result.blocks
            results.append(_result_out(result))

        try:
            saved = runtime.gateway.save(
                doc_id, document.title, blocks, next_block_id=high_water_mark(idgen)
            )
        except BlockdocError as e:
            logger.warning("saving document %s failed: %s", doc_id, e)
            raise HTTPException(status_code=500, detail=f"Failed to save document: {e}") from None

        return {"document": saved.to_dict(), "results": results}

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
