"""UnderControl storefront API entrypoint."""

import logging
import os

from fastapi import FastAPI

from services.api.app.routers.order_email import router as order_email_router

logging.basicConfig(
    level=os.getenv("UC_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="UnderControl API")

app.include_router(order_email_router)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
