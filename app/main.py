# app/main.py
import logging
from datetime import datetime
from pathlib import Path
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app import config
from app.logging_utils import configure_logging
from app.utils.farsi import to_farsi_digits

# ---- Routers ----
from app.routers import auth as auth_router
from app.routers.admin import router as admin_router

configure_logging(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

app = FastAPI(title="Parasto Admin")

# =============================================================================
# Middleware
# =============================================================================
app.add_middleware(SessionMiddleware, secret_key=config.SECRET_KEY)
app.add_middleware(GZipMiddleware, minimum_size=500)


# Redirect HTML GET 401s to /auth/login?next=...
@app.exception_handler(401)
async def handle_unauthorized(request: Request, exc: HTTPException):
    accepts_html = "text/html" in (request.headers.get("accept") or "")
    if request.method == "GET" and accepts_html:
        next_path = str(request.url.path)
        if request.url.query:
            next_path += f"?{request.url.query}"
        return RedirectResponse(url=f"/auth/login?next={quote(next_path)}", status_code=303)
    return JSONResponse({"detail": getattr(exc, "detail", "Unauthorized")}, status_code=401)


# =============================================================================
# Templates
# =============================================================================
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
app.state.templates = templates

templates.env.filters["fa"] = to_farsi_digits
# Footer/helper: use as {{ now().year }}
templates.env.globals["now"] = lambda: datetime.now()

# =============================================================================
# Routes
# =============================================================================
@app.get("/")
def health():
    return {"ok": True, "service": "parasto-admin"}


app.include_router(auth_router.router)  # /auth/...
app.include_router(admin_router)  # /admin/...
