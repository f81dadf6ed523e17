from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from inkpost.adapters.clock import SystemClock
from inkpost.adapters.sqlite.repos import SQLiteShortUrlRepo
from inkpost.api.deps import get_clock, get_rules, get_short_url_repo
from inkpost.api.errors import raise_for_errors
from inkpost.api.schemas import ShortUrlLookupResponse, ShortUrlRequest, ShortUrlResponse
from inkpost.components.shortlinks import ShortenInput, run_resolve, run_shorten
from inkpost.rules.models import Rules

router = APIRouter()
redirect_router = APIRouter()


@router.post("", response_model=ShortUrlResponse)
def shorten(
    req: ShortUrlRequest,
    repo: SQLiteShortUrlRepo = Depends(get_short_url_repo),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> ShortUrlResponse:
    result = run_shorten(
        ShortenInput(url=req.url, blog_slug=req.blog_slug),
        repo=repo,
        rules=rules.short_links,
        time_port=clock,
    )
    if not result.success or result.link is None or result.short_url is None:
        raise_for_errors(result.errors)
    return ShortUrlResponse(short_url=result.short_url, short_code=result.link.short_code)


@router.get("", response_model=ShortUrlLookupResponse)
def lookup(
    code: str | None = Query(default=None),
    repo: SQLiteShortUrlRepo = Depends(get_short_url_repo),
) -> ShortUrlLookupResponse:
    result = run_resolve(code, repo=repo)
    if not result.success or result.link is None:
        raise_for_errors(result.errors)
    return ShortUrlLookupResponse(original_url=result.link.original_url, clicks=result.link.clicks)


@redirect_router.get("/s/{code}")
def follow_short_link(
    code: str,
    repo: SQLiteShortUrlRepo = Depends(get_short_url_repo),
) -> RedirectResponse:
    result = run_resolve(code, repo=repo)
    if not result.success or result.link is None:
        raise_for_errors(result.errors)
    return RedirectResponse(url=result.link.original_url, status_code=307)
