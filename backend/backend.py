# Entry point: `uvicorn backend:app --reload` from this directory.
import os

import uvicorn

from tuition_module.app import app

__all__ = ["app"]


if __name__ == "__main__":
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
