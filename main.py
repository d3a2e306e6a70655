import os

from mgv_backend.main import create_app

# WSGI entry for gunicorn/render
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=True)
