import uvicorn

from recall.config import HOST, PORT

if __name__ == "__main__":
    uvicorn.run("recall.main:app", host=HOST, port=PORT)
