import logging
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from config import get_settings
from handlers import convert_sql, download_filename, handle_parse

logger = logging.getLogger(__name__)

app = FastAPI(title="Sql2Prisma API")

# CORS for the editor frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SqlRequest(BaseModel):
    sql: str


class ConvertResponse(BaseModel):
    prisma_schema: str
    tables: int
    enums: int
    errors: list[str] = []
    warnings: list[str] = []


def _raise_for(result: dict):
    detail = {"error": result.get("error")}
    if result.get("errors"):
        detail["errors"] = result["errors"]
    raise HTTPException(status_code=422, detail=detail)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/parse")
async def parse_sql(request: SqlRequest):
    result = handle_parse(request.sql)
    if not result["success"]:
        _raise_for(result)
    return result["ir"]


@app.post("/convert", response_model=ConvertResponse)
async def convert(request: SqlRequest):
    result = convert_sql(request.sql)
    if not result["success"]:
        _raise_for(result)

    return ConvertResponse(
        prisma_schema=result["prisma_schema"],
        tables=result["tables"],
        enums=result["enums"],
        errors=result["errors"],
        warnings=result["warnings"],
    )


@app.post("/convert/download", response_class=PlainTextResponse)
async def convert_download(request: SqlRequest):
    result = convert_sql(request.sql)
    if not result["success"]:
        _raise_for(result)

    filename = download_filename()
    return PlainTextResponse(
        result["prisma_schema"],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


if __name__ == "__main__":
    import uvicorn
    from config import setup_logging

    setup_logging()
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
