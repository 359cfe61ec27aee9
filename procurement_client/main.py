# procurement_client/main.py

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .client import ApiError, PreconditionError
from .config import configure_logging

from .api import purchase_orders as purchase_orders_api
from .api import backorders as backorders_api
from .api import shortage as shortage_api


configure_logging()

app = FastAPI(title="Procurement Client")

# Include API routers
app.include_router(purchase_orders_api.router)
app.include_router(backorders_api.router)
app.include_router(shortage_api.router)


@app.exception_handler(PreconditionError)
async def precondition_error_handler(request: Request, exc: PreconditionError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    # no status means the backend was never reached
    return JSONResponse(status_code=exc.status_code or 502, content={"error": str(exc)})


@app.get("/")
def root():
    return {"service": "procurement-client", "status": "ok"}
