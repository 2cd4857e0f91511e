from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from screenflow.api.routes import router
from screenflow.settings import settings

app = FastAPI(title="Screenflow Onboarding API")

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Screenflow is running. POST /api/run with {magicLink} to start a run.",
    }


@app.get("/health")
def health():
    return {"status": "ok"}
