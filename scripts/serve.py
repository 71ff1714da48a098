"""Start the event server.

Usage:
    python -m scripts.serve                  # dev server on :8000 with reload
    python -m scripts.serve --port 9000 --no-reload
"""

import argparse

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the speed-dating API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    args = parser.parse_args()

    from app.config import settings

    print(f"Serving '{settings.event_name}' ({settings.event_slug}) on {args.host}:{args.port}")
    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
        timeout_graceful_shutdown=1,
    )


if __name__ == "__main__":
    main()
