"""Application instance for Gunicorn.

    gunicorn --bind 0.0.0.0:8000 scim_compat.wsgi:app
"""
from scim_compat.flask_app import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
