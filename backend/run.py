from __future__ import annotations

import uvicorn

from moleduel.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "moleduel.application:app",
        host="0.0.0.0",
        port=settings.ws_port,
    )
