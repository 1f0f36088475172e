import traceback
from datetime import datetime
from typing import Literal

from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from . import config
from .database import get_db, init_db, dispose_db
from .errors import (
    InvalidURL, UnsafeURL, UnrecognizedExtension,
    PersistenceFailure, RenderFailure, QRSUError
)
from .qr_generator import MEDIA_TYPES, generate_qr_code
from .url_shortener import create_short_url, get_original_url
from .url_validator import ValidationResult, validate_url

app = FastAPI(title="QR Code & Short URL Service")

# Pydantic models
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class ValidateRequest(CamelModel):
    url: str

class ShortenRequest(CamelModel):
    url: str
    allow_unrecognized_extension: bool = False

class ShortenResponse(CamelModel):
    short_code: str
    long_url: str = Field(alias="longURL")
    short_url: str
    created_at: datetime
    has_valid_extension: bool

ERROR_STATUS = {
    InvalidURL: 400,
    UnsafeURL: 403,
    UnrecognizedExtension: 422,
    PersistenceFailure: 503,
    RenderFailure: 422,
}

def error_response(error: QRSUError) -> HTTPException:
    """Map a service error kind to an HTTP error"""
    status_code = ERROR_STATUS.get(type(error), 500)
    return HTTPException(status_code=status_code, detail=error.message)

async def render_response(data: str, size: int, fmt: str, transparent: bool) -> Response:
    # Rendering is CPU bound, keep it off the event loop
    content = await run_in_threadpool(
        generate_qr_code, data, size=size, fmt=fmt, transparent=transparent
    )
    if content is None:
        raise error_response(RenderFailure())
    return Response(content=content, media_type=MEDIA_TYPES[fmt])

@app.on_event("startup")
async def startup():
    await init_db()

@app.on_event("shutdown")
async def shutdown():
    await dispose_db()

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

@app.post("/api/validate", response_model=ValidationResult)
async def validate(request: ValidateRequest):
    """Validate a URL without shortening it"""
    return await validate_url(request.url)

@app.post("/api/shorten", response_model=ShortenResponse)
async def shorten_url(request: ShortenRequest, db: AsyncSession = Depends(get_db)):
    """Validate a URL and create a short URL for it"""
    result = await validate_url(request.url)
    try:
        result.raise_for_status(request.allow_unrecognized_extension)
        link = await create_short_url(db, result.normalized_url)
    except QRSUError as e:
        print(f"[API] Cannot shorten {result.normalized_url}: {type(e).__name__}")
        raise error_response(e)
    except Exception as e:
        print(f"[API] Error in shorten API: {e}")
        print(f"[API] {traceback.format_exc()}")
        raise HTTPException(status_code=500, detail="Server error, please try again later")

    return ShortenResponse(
        short_code=link["shortCode"],
        long_url=link["longURL"],
        short_url=link["shortUrl"],
        created_at=link["createdAt"],
        has_valid_extension=result.has_valid_extension,
    )

@app.get("/api/qr")
async def qr_code(
    data: str = Query(..., min_length=1),
    size: int = Query(200, ge=21, le=4096),
    format: Literal["png", "jpeg", "svg"] = "png",
    transparent: bool = False,
):
    """Render a QR code for arbitrary data"""
    return await render_response(data, size, format, transparent)

@app.get("/qr/{short_code}")
async def short_url_qr_code(
    short_code: str,
    size: int = Query(200, ge=21, le=4096),
    format: Literal["png", "jpeg", "svg"] = "png",
    transparent: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """QR code image of an existing short URL"""
    if await get_original_url(db, short_code) is None:
        raise HTTPException(status_code=404, detail="Short URL not found")
    short_url = f"https://{config.SHORT_URL_DOMAIN}/{short_code}"
    return await render_response(short_url, size, format, transparent)

@app.get("/{short_code}")
async def redirect_url(short_code: str, db: AsyncSession = Depends(get_db)):
    """Redirect to original URL"""
    original_url = await get_original_url(db, short_code)
    if original_url:
        return RedirectResponse(url=original_url, status_code=302)
    else:
        raise HTTPException(status_code=404, detail="Short URL not found")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
