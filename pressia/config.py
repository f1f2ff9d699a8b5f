from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='PRESSIA_', env_file='.env', env_file_encoding='utf-8', extra='ignore')

    database_path: Path = Path.home() / '.pressia' / 'pressia.db'
    seed_default_item_types: bool = True
    strict_status_transitions: bool = False
    log_level: str = 'INFO'
    sql_echo: bool = False

    @property
    def database_path_resolved(self) -> Path:
        return self.database_path.expanduser().resolve()


settings = Settings()
