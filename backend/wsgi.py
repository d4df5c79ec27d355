"""WSGI configuration for production deployment."""
import os
from dotenv import load_dotenv

load_dotenv()

from edusphere import create_app  # noqa: E402

app = create_app(os.getenv('FLASK_ENV', 'production'))

if __name__ == "__main__":
    app.run()
