import logging

import uvicorn

from api.app_factory import create_app
from main_configs import MAIN_APP_HOST, MAIN_APP_PORT

logger = logging.getLogger("LEO Segments API")


# ============================================================
# App instance (used by uvicorn)
# ============================================================
app = create_app()


# ============================================================
# Local Dev Entry
# ============================================================

if __name__ == "__main__":
    logger.info("Starting dev server on %s:%s", MAIN_APP_HOST, MAIN_APP_PORT)
    uvicorn.run(
        "main_app:app",
        host=MAIN_APP_HOST,
        port=MAIN_APP_PORT,
        reload=True,
    )
