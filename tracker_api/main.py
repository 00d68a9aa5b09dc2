from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse

from tracker_api.core.config import settings
from tracker_api.core.logging_config import configure_logging
from tracker_api.routers import health, projects, requests, roadmap

configure_logging()

app = FastAPI(
    title="Feature Tracker API",
    version="1.0.0",
    description="API for feature requests, roadmap board ordering, and request merging.",
    # The API is proxied under a path prefix at the edge; Swagger needs the prefixed openapi URL,
    # so the default /docs route is replaced below.
    docs_url=None,
    root_path=settings.root_path,
)


@app.get("/docs", include_in_schema=False)
def swagger_ui():
    prefix = (settings.root_path or "").rstrip("/")
    openapi_url = f"{prefix}{app.openapi_url}"
    return get_swagger_ui_html(openapi_url=openapi_url, title=f"{app.title} - Docs")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Schema errors share the 400 of business-rule input errors.
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(projects.router)
app.include_router(requests.router)
app.include_router(roadmap.router)
