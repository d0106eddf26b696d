#!/usr/bin/env python3

import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from stacks.routes import api
from stacks.configs import OPTIONS
from stacks.core.exceptions import InventoryOverrunError
from stacks import __version__ as VERSION

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Stacks API",
    description="Stacks: circulation tracking for small libraries",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api.router, prefix="/v1/api")

@app.exception_handler(InventoryOverrunError)
async def inventory_overrun(request: Request, exc: InventoryOverrunError):
    logger.error(f"Inventory overrun during {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "inventory_overrun", "message": str(exc)},
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("stacks.app:app", **OPTIONS)
