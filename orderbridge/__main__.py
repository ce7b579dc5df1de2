"""
Lancement local de la passerelle: `python -m orderbridge`.

PORT (8000), UVICORN_RELOAD ("1"/"true"/"yes") et LOG_LEVEL ("info") pilotent uvicorn.
Une seule instance en SESSION_SCOPE=process: les sessions backend vivent en mémoire du process.
"""
import os

import uvicorn


def server_options() -> dict:
    return {
        "host": os.environ.get("HOST", "0.0.0.0"),
        "port": int(os.environ.get("PORT", 8000)),
        "reload": os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        "log_level": os.environ.get("LOG_LEVEL", "info"),
    }


def main() -> None:
    uvicorn.run("orderbridge.asgi:app", **server_options())


if __name__ == "__main__":
    main()
