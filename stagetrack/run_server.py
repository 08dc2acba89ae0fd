#!/usr/bin/env python3
"""
StageTrack server launcher script.

Starts uvicorn on the packaged FastAPI app. Host, port and reload can be
overridden with STAGETRACK_HOST, STAGETRACK_PORT and STAGETRACK_RELOAD.
"""

import os


def main() -> None:
    import uvicorn

    uvicorn.run(
        "stagetrack.api:app",
        host=os.environ.get("STAGETRACK_HOST", "127.0.0.1"),
        port=int(os.environ.get("STAGETRACK_PORT", "8000")),
        reload=os.environ.get("STAGETRACK_RELOAD", "").lower() in ("1", "true", "yes"),
    )


if __name__ == "__main__":
    main()
