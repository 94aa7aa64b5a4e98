import uvicorn

from desiflash.core.config import HOST, LOG_LEVEL, PORT

if __name__ == "__main__":
    uvicorn.run("desiflash.api.main:app", host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
