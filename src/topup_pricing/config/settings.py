"""
Centralized settings and path configuration for the pricing service.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def get_package_root() -> Path:
    """Get the topup_pricing package directory."""
    return Path(__file__).resolve().parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""
    
    # Storage backend: "memory" (seeded from CSV) or "supabase"
    store_backend: str = "memory"
    
    # Hosted database credentials
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    
    # CSV seed directory for the memory backend
    seed_data_dir: Optional[Path] = None
    
    # Bulk fan-out; 1 keeps the sequential loop
    bulk_max_workers: int = 1
    
    currency_symbol: str = "₱"
    log_level: str = "INFO"
    
    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> 'Settings':
        """Load settings from environment variables (and .env if present)."""
        load_dotenv(env_file)
        
        seed_dir = os.getenv("SEED_DATA_DIR")
        
        return cls(
            store_backend=os.getenv("STORE_BACKEND", "memory").strip().lower(),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_KEY"),
            seed_data_dir=Path(seed_dir) if seed_dir else get_package_root() / 'data' / 'seed',
            bulk_max_workers=max(1, int(os.getenv("BULK_MAX_WORKERS", "1"))),
            currency_symbol=os.getenv("CURRENCY_SYMBOL", "₱"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
    
    @property
    def has_supabase_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure_logging(settings: Optional[Settings] = None):
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
