import os
class Config:
    MYSQL_USER = os.getenv("MYSQL_USER", "root")
    MYSQL_PASSWORD = os.getenv("MYSQL_PASSWORD", "")
    MYSQL_HOST = os.getenv("MYSQL_HOST", "localhost")
    MYSQL_PORT = os.getenv("MYSQL_PORT", "3306")
    MYSQL_DATABASE = os.getenv("MYSQL_DATABASE", "lineage_db")
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        f"mysql+pymysql://{MYSQL_USER}:{MYSQL_PASSWORD}@{MYSQL_HOST}:{MYSQL_PORT}/{MYSQL_DATABASE}",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 30,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
        'max_overflow': 20,
        'pool_timeout': 30
    }
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "super-secret-key")
    CORS_ORIGINS = [o.strip() for o in os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173,http://localhost:8099"
    ).split(",") if o.strip()]
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LINEAGE_DEFAULT_DIRECTION = os.getenv("LINEAGE_DEFAULT_DIRECTION", "both")
    LINEAGE_DEFAULT_DEPTH = int(os.getenv("LINEAGE_DEFAULT_DEPTH", "3"))
    LINEAGE_MAX_DEPTH = int(os.getenv("LINEAGE_MAX_DEPTH", "10"))
    # breadth guards; max depth alone does not bound fan-out
    LINEAGE_MAX_EDGES = int(os.getenv("LINEAGE_MAX_EDGES", "5000"))
    LINEAGE_TRAVERSAL_TIMEOUT_SECONDS = float(os.getenv("LINEAGE_TRAVERSAL_TIMEOUT_SECONDS", "10"))
    LINEAGE_UPSERT_MAX_RETRIES = int(os.getenv("LINEAGE_UPSERT_MAX_RETRIES", "3"))
    LINEAGE_DEFAULT_ACTOR = os.getenv("LINEAGE_DEFAULT_ACTOR", "system")
class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LOG_LEVEL = "DEBUG"
