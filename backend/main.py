from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.clusters import router
from catalog.registry import UnknownDataset
from markers.errors import InvalidOptions, InvalidPoint, UnknownCluster

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(UnknownCluster)
def handle_unknown_cluster(_request: Request, exc: UnknownCluster):
    # Usually a tap that raced a rebuild; the client should treat it as a no-op.
    return JSONResponse(
        status_code=404,
        content={"error": "unknown_cluster", "clusterId": exc.cluster_id},
    )


@app.exception_handler(UnknownDataset)
def handle_unknown_dataset(_request: Request, exc: UnknownDataset):
    return JSONResponse(
        status_code=404,
        content={"error": "unknown_dataset", "dataset": exc.dataset_id},
    )


@app.exception_handler(InvalidPoint)
@app.exception_handler(InvalidOptions)
def handle_invalid_input(_request: Request, exc: Exception):
    return JSONResponse(
        status_code=422, content={"error": "invalid_input", "detail": str(exc)}
    )
