import os
from dotenv import load_dotenv

load_dotenv()

# Settings attribute -> environment variable it is read from
REQUIRED = {
    "DB_URL_FROM_ENV": "AHREF_SERVICE_DATABASE_URL",
    "API_KEY": "AHREF_SERVICE_API_KEY",
    "OUTLETS_SERVICE_URL": "OUTLETS_SERVICE_URL",
    "OUTLETS_SERVICE_API_KEY": "OUTLETS_SERVICE_API_KEY",
}

class Settings:
    PORT = int(os.getenv('PORT', '3000'))
    DB_URL_FROM_ENV = os.getenv('AHREF_SERVICE_DATABASE_URL')
    # SQLite fallback only lets the app be imported; validate() still requires the variable
    DB_URL = DB_URL_FROM_ENV or 'sqlite:///./ahref_service.db'
    API_KEY = os.getenv('AHREF_SERVICE_API_KEY')
    OUTLETS_SERVICE_URL = os.getenv('OUTLETS_SERVICE_URL')
    OUTLETS_SERVICE_API_KEY = os.getenv('OUTLETS_SERVICE_API_KEY')
    OUTLETS_SERVICE_TIMEOUT = float(os.getenv('OUTLETS_SERVICE_TIMEOUT', '15'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    def validate(self):
        """Raise if any variable the server cannot start without is unset."""
        missing = [env for attr, env in REQUIRED.items() if not getattr(self, attr)]
        if missing:
            raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

settings = Settings()
