import os
from dataclasses import dataclass
from dotenv import load_dotenv


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    service_name: str = "products-service"
    host: str = "0.0.0.0"
    port: int = 8001
    log_level: str = "INFO"
    log_file: str = "logs.json"
    seed_products: bool = True


def load_settings() -> Settings:
    """Lit la configuration depuis l'environnement (et un éventuel fichier .env)."""
    # Chargement des variables d'environnement
    load_dotenv()
    return Settings(
        service_name=os.getenv("SERVICE_NAME", "products-service"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 8001)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=os.getenv("LOG_FILE", "logs.json"),
        seed_products=_env_bool("SEED_PRODUCTS", "true"),
    )
