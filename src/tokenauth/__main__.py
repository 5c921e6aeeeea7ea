"""tokenauth entrypoint.

Run with:
  python -m tokenauth
"""

import os

import uvicorn


def main() -> None:
    host = os.getenv("TOKENAUTH_HOST", "0.0.0.0")
    port = int(os.getenv("TOKENAUTH_PORT", "8000"))
    reload = os.getenv("TOKENAUTH_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("tokenauth.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
