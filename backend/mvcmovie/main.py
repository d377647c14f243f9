# mvcmovie/main.py
import os

from mvcmovie.startup import create_app

# Environment and content root come from MVCMOVIE_ENVIRONMENT / MVCMOVIE_CONTENTROOT
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        ssl_keyfile=os.getenv("SSL_KEYFILE"),
        ssl_certfile=os.getenv("SSL_CERTFILE"),
    )
