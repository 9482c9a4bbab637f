from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response

from feed_api import __version__
from feed_api.config import get_settings
from feed_api.db import get_engine
from feed_api.errors import StoreFailure
from feed_api.logging_config import configure_logging
from feed_api.services.status.rss import render_rss
from feed_api.services.status.store import FeedStore

app = FastAPI(title="Status Feed API", version=__version__)


@app.on_event("startup")
def startup() -> None:
    get_engine()


def get_feed_store() -> FeedStore:
    return FeedStore(get_engine())


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/status.rss")
def status_rss() -> Response:
    settings = get_settings()

    try:
        entries = list(get_feed_store().recent(settings.feed_limit))
    except StoreFailure:
        return PlainTextResponse(
            "An unexpected error occurred while querying the feed",
            status_code=500,
        )

    body = render_rss(
        entries,
        source_name=settings.status_source_name,
        link=settings.status_page_url,
    )
    return Response(content=body, media_type="application/xml")


def run() -> None:
    import uvicorn

    configure_logging(get_settings().log_level)
    uvicorn.run("feed_api.main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    run()
