from dining_app.api import create_app
from dining_app.core.config import get_settings

app = create_app()


@app.get("/")
def root():
    return {"status": "ok", "message": "Campus Dining API running"}


if __name__ == "__main__":
    import uvicorn

    print("Campus Dining backend starting. API available at http://localhost:8000")
    # Run using the local app instance. Use reload in development.
    uvicorn.run("main:app", host="0.0.0.0", port=8000, log_level=get_settings().LOG_LEVEL.lower())
