import logging

from .common import app
from .routers.users.endpoints import router as UsersEndpoints
from .routers.wallets.endpoints import router as WalletsEndpoints

logger = logging.getLogger(__name__)

# Include routers
app.include_router(WalletsEndpoints)
app.include_router(UsersEndpoints)

@app.get("/health")
async def health():
    return {"status": "ok"}
