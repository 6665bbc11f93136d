#!/usr/bin/env python3
"""
Start the media handler locally with auto-reload.

Creates `.env` from `env.example` on first run so the bucket and CDN
settings can be filled in before the server starts.
"""

import os
import shutil
import sys
from pathlib import Path

import uvicorn

ENV_FILE = Path(".env")
ENV_TEMPLATE = Path("env.example")


def ensure_env_file() -> bool:
    if ENV_FILE.exists():
        return True

    if ENV_TEMPLATE.exists():
        shutil.copyfile(ENV_TEMPLATE, ENV_FILE)
        print(f"Created {ENV_FILE} from {ENV_TEMPLATE}; set S3_BUCKET_NAME, CDN_BASE_URL and credentials, then rerun.")
    else:
        print(f"No {ENV_FILE} found and no {ENV_TEMPLATE} to copy.")
    return False


def main():
    if not ensure_env_file():
        sys.exit(1)

    os.environ.setdefault("ENVIRONMENT", "development")
    os.environ.setdefault("LOG_LEVEL", "DEBUG")

    uvicorn.run(
        "media_handler.main:create_app",
        factory=True,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=True,
        reload_dirs=["media_handler"],
    )


if __name__ == "__main__":
    main()
