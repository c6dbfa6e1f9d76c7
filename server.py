"""Run the CourseHub signup API with uvicorn (reload when ENV=dev)."""
import os
import uvicorn

if __name__ == "__main__":
    dev = os.environ.get("ENV", "dev") == "dev"
    port = int(os.environ.get("PORT", 8000))

    if dev:
        # Local dev with reload
        uvicorn.run("app.main:app", host=os.environ.get("HOST", "127.0.0.1"), port=port, reload=True)
    else:
        uvicorn.run("app.main:app", host=os.environ.get("HOST", "0.0.0.0"), port=port)
